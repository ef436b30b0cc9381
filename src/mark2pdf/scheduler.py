from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from pathlib import Path
from typing import TypeVar

from .context import RunContext
from .models import Task, TaskResult
from .utils import elapsed_ms

T = TypeVar("T")

ExecuteOne = Callable[[T], Awaitable[TaskResult]]


def chunked(items: Sequence[T], size: int) -> Iterator[tuple[int, Sequence[T]]]:
    """Yield ``(offset, chunk)`` pairs of consecutive slices of *items*."""

    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for offset in range(0, len(items), size):
        yield offset, items[offset : offset + size]


def needs_conversion(source: Path, target: Path) -> bool:
    """Return ``False`` only when *target* exists and is not older than *source*."""

    try:
        source_mtime = source.stat().st_mtime_ns
        target_mtime = target.stat().st_mtime_ns
    except OSError:
        return True
    return source_mtime > target_mtime


def filter_changed(files: Iterable[Path], target_for: Callable[[Path], Path]) -> list[Path]:
    return [path for path in files if needs_conversion(path, target_for(path))]


def _source_of(item: object) -> Path:
    if isinstance(item, Task):
        return item.source_path
    return Path(str(item))


class BatchScheduler:
    """Run tasks in fixed-size chunks; a chunk fully settles before the next starts."""

    def __init__(self, concurrency: int, *, retries: int = 0, context: RunContext | None = None) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if retries < 0:
            raise ValueError("retries must not be negative")
        self._concurrency = concurrency
        self._retries = retries
        self._context = context or RunContext.create()

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run_batch(self, items: Sequence[T], execute_one: ExecuteOne[T]) -> list[TaskResult]:
        items = list(items)
        results: list[TaskResult | None] = [None] * len(items)
        events = self._context.events
        events.emit("batch:start", {"total": len(items), "concurrency": self._concurrency})
        for offset, chunk in chunked(items, self._concurrency):
            events.emit("batch:chunk", {"offset": offset, "size": len(chunk)})
            settled = await asyncio.gather(*(self._run_one(item, execute_one) for item in chunk))
            for position, result in enumerate(settled):
                results[offset + position] = result
                events.emit("task:complete", result)
        completed = [result for result in results if result is not None]
        events.emit("batch:complete", completed)
        return completed

    async def _run_one(self, item: T, execute_one: ExecuteOne[T]) -> TaskResult:
        start = time.perf_counter()
        attempts = self._retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await execute_one(item)
            except Exception as exc:
                last_error = exc
                if attempt < attempts:
                    self._context.logger.warning(
                        "Task %s failed (%s), retrying %d/%d",
                        _source_of(item),
                        exc,
                        attempt,
                        self._retries,
                    )
        message = str(last_error) or type(last_error).__name__
        self._context.logger.error("Task %s failed: %s", _source_of(item), message)
        return TaskResult.failure(_source_of(item), message, duration_ms=elapsed_ms(start))


__all__ = [
    "BatchScheduler",
    "ExecuteOne",
    "chunked",
    "filter_changed",
    "needs_conversion",
]
