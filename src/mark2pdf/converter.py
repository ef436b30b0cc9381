from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .adapters import Renderer, RenderOptions, get_renderer, render_async
from .cache import ResultCache
from .config import AppConfig, apply_overrides
from .context import RunContext
from .models import Summary, TaskResult
from .scanner import FileTreeScanner, apply_filters
from .scheduler import BatchScheduler, filter_changed
from .summary import summarize
from .utils import elapsed_ms, ensure_dir, get_output_path

CacheKey = tuple[str, int, int, str]


class ConverterService:
    """Drive batch conversion of source documents into PDF files."""

    def __init__(
        self,
        config: AppConfig,
        *,
        renderer: Renderer | None = None,
        context: RunContext | None = None,
        scanner: FileTreeScanner | None = None,
    ) -> None:
        self._config = config
        self._renderer = renderer or get_renderer("markdown")
        self._context = context or RunContext.create()
        self._scanner = scanner or FileTreeScanner(self._context)
        self._cache: ResultCache[TaskResult] = ResultCache()

    @property
    def config(self) -> AppConfig:
        return self._config

    def collect_files(self, config: AppConfig | None = None) -> list[Path]:
        config = config or self._config
        files = self._scanner.scan(Path(config.input.path), config.input.extensions)
        filters = config.input.filters
        if filters is not None:
            files = apply_filters(files, filters.include, filters.exclude)
        return files

    def output_path_for(self, source: Path) -> Path:
        return get_output_path(source, self._config)

    async def convert_all(self) -> Summary:
        config = self._config
        logger = self._context.logger
        start = time.perf_counter()

        logger.info("Scanning %s for %s files", config.input.path, ", ".join(config.input.extensions))
        files = self.collect_files(config)
        if not files:
            logger.warning("No %s files found under %s", self._renderer.label, config.input.path)
            return summarize([], start)
        logger.info("Found %d %s files", len(files), self._renderer.label)

        if config.output.create_dir_if_not_exist:
            ensure_dir(Path(config.output.path))

        pending = files
        if config.features.incremental:
            pending = filter_changed(files, lambda path: get_output_path(path, config))
            if not pending:
                logger.info("All files are up to date, nothing to convert")
                return summarize([], start, skipped=len(files))
            logger.info("%d of %d files need conversion", len(pending), len(files))

        options = RenderOptions.from_config(config)
        scheduler = BatchScheduler(
            config.options.concurrent,
            retries=config.features.retry,
            context=self._context,
        )

        async def execute_one(source: Path) -> TaskResult:
            return await self._convert(source, config, options)

        results = await scheduler.run_batch(pending, execute_one)
        return summarize(results, start, skipped=len(files) - len(pending))

    async def convert_file(self, source: Path) -> TaskResult:
        """Convert one file; every failure is reported in the result."""

        config = self._config
        start = time.perf_counter()
        try:
            return await self._convert(source, config, RenderOptions.from_config(config))
        except Exception as exc:
            self._context.logger.error("Conversion failed for %s: %s", source.name, exc)
            return TaskResult.failure(source, str(exc) or type(exc).__name__, duration_ms=elapsed_ms(start))

    async def _convert(self, source: Path, config: AppConfig, options: RenderOptions) -> TaskResult:
        start = time.perf_counter()
        logger = self._context.logger
        if source.suffix.lower() not in self._renderer.extensions:
            return TaskResult.failure(
                source, f"Not a valid {self._renderer.label} file", duration_ms=elapsed_ms(start)
            )
        try:
            content = await asyncio.to_thread(source.read_text, encoding="utf-8", errors="replace")
        except OSError as exc:
            return TaskResult.failure(source, f"Cannot read file: {exc}", duration_ms=elapsed_ms(start))
        if not content.strip():
            return TaskResult.failure(source, "File content is empty", duration_ms=elapsed_ms(start))

        target = get_output_path(source, config)
        cache_key = self._cache_key(source, target) if config.features.cache else None
        if cache_key is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                if target.exists():
                    logger.debug("Reusing cached conversion for %s", source.name)
                    return TaskResult(success=True, source_path=source, output_path=target, skipped=True)
                self._cache.discard(cache_key)

        output_root = Path(config.output.path)
        if not config.output.create_dir_if_not_exist and not output_root.is_dir():
            return TaskResult.failure(
                source,
                f"Output directory does not exist: {output_root}",
                output_path=target,
                duration_ms=elapsed_ms(start),
            )

        logger.debug("Converting %s -> %s", source, target)
        ensure_dir(target.parent)
        await render_async(self._renderer, source, target, options)
        result = TaskResult(
            success=True,
            source_path=source,
            output_path=target,
            duration_ms=elapsed_ms(start),
        )
        if cache_key is not None:
            self._cache.put(cache_key, result)
        logger.info("Converted %s (%dms)", source.name, result.duration_ms)
        return result

    def _cache_key(self, source: Path, target: Path) -> CacheKey | None:
        try:
            stat = source.stat()
        except OSError:
            return None
        return (str(source.resolve()), stat.st_mtime_ns, stat.st_size, str(target))

    def update_config(self, overrides: Mapping[str, Any]) -> AppConfig:
        """Swap in a merged copy; runs already in progress keep their snapshot."""

        self._config = apply_overrides(self._config, overrides)
        self._cache.clear()
        return self._config

    def cache_stats(self) -> dict[str, int]:
        return self._cache.stats()


__all__ = ["ConverterService"]
