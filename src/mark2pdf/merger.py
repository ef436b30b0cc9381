from __future__ import annotations

import asyncio
import locale
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from .adapters import PdfBackend, PypdfBackend, SaveOptions
from .config import AppConfig, apply_overrides
from .context import RunContext
from .models import Summary, TaskResult
from .scanner import DirNode, FileTree, FileTreeScanner
from .summary import summarize
from .utils import PDF_SUFFIX, atomic_write_bytes, elapsed_ms, ensure_dir

COMPRESSION_LEVELS: dict[str, int] = {"high": 50, "medium": 20, "low": 10}
DEFAULT_COMPRESSION = "medium"


def compression_quality(quality: str | None) -> int:
    """Objects-per-stream hint for a compression quality name."""

    return COMPRESSION_LEVELS.get(quality or DEFAULT_COMPRESSION, COMPRESSION_LEVELS[DEFAULT_COMPRESSION])


def _stat_value(attribute: str) -> Callable[[Path], float]:
    def key(path: Path) -> float:
        try:
            return getattr(path.stat(), attribute)
        except OSError:
            return 0

    return key


def _name_key(path: Path) -> str:
    return locale.strxfrm(str(path))


SORT_KEYS: dict[str, Callable[[Path], Any]] = {
    "name": _name_key,
    "date": _stat_value("st_mtime"),
    "size": _stat_value("st_size"),
}


class PdfMerger:
    """Combine several PDF files into one output file."""

    def __init__(
        self,
        config: AppConfig,
        *,
        backend: PdfBackend | None = None,
        context: RunContext | None = None,
    ) -> None:
        self._config = config
        self._backend = backend or PypdfBackend()
        self._context = context or RunContext.create()

    @property
    def save_options(self) -> SaveOptions:
        compression = self._config.options.compression
        return SaveOptions(
            use_object_streams=compression.enabled,
            objects_per_stream=compression_quality(compression.quality),
        )

    def sort_files(self, files: Sequence[Path]) -> list[Path]:
        sort = self._config.options.sort
        if not sort.enabled:
            return list(files)
        ordered = sorted(files, key=SORT_KEYS[sort.method])
        if sort.direction == "desc":
            ordered.reverse()
        return ordered

    def merge(self, files: Sequence[Path], output: Path, *, source: Path | None = None) -> TaskResult:
        start = time.perf_counter()
        logger = self._context.logger
        source = source or (files[0].parent if files else output)
        if not files:
            return TaskResult.failure(source, "No PDF files to merge", output_path=output)

        ordered = self.sort_files(files)
        try:
            document = self._backend.create()
            merged = 0
            for path in ordered:
                try:
                    loaded = self._backend.load(path.read_bytes())
                    for page in document.copy_pages(loaded, loaded.page_indices()):
                        document.add_page(page)
                except Exception as exc:
                    logger.warning("Failed to process %s: %s", path, exc)
                    continue
                merged += 1
            if merged == 0:
                return TaskResult.failure(
                    source,
                    f"None of the {len(ordered)} PDF files could be read",
                    output_path=output,
                    duration_ms=elapsed_ms(start),
                )
            atomic_write_bytes(output, document.save(self.save_options))
        except Exception as exc:
            return TaskResult.failure(
                source, str(exc) or type(exc).__name__, output_path=output, duration_ms=elapsed_ms(start)
            )
        return TaskResult(
            success=True,
            source_path=source,
            output_path=output,
            duration_ms=elapsed_ms(start),
            processed_files=merged,
        )

    def update_config(self, config: AppConfig) -> None:
        self._config = config


class MergerService:
    """Merge the PDFs of every sub-directory of the input tree, one output per directory."""

    def __init__(
        self,
        config: AppConfig,
        *,
        merger: PdfMerger | None = None,
        context: RunContext | None = None,
        scanner: FileTreeScanner | None = None,
    ) -> None:
        self._config = config
        self._context = context or RunContext.create()
        self._merger = merger or PdfMerger(config, context=self._context)
        self._scanner = scanner or FileTreeScanner(self._context)

    @property
    def config(self) -> AppConfig:
        return self._config

    def plan(self, config: AppConfig | None = None) -> list[DirNode]:
        """Directories that will produce an output, in depth-first order."""

        config = config or self._config
        input_dir = Path(config.input.path).resolve()
        output_dir = Path(config.output.path).resolve()
        tree = self._scanner.scan_tree(input_dir, PDF_SUFFIX)
        directories: list[DirNode] = []
        for index, node in tree.walk():
            if index == FileTree.ROOT or not node.files:
                continue
            if node.dir_path == output_dir or output_dir in node.dir_path.parents:
                self._context.logger.debug("Ignoring output directory %s", node.dir_path)
                continue
            directories.append(node)
        return directories

    async def merge_all(self) -> Summary:
        config = self._config
        logger = self._context.logger
        start = time.perf_counter()
        output_dir = Path(config.output.path).resolve()
        if config.output.create_dir_if_not_exist:
            ensure_dir(output_dir)

        logger.info("Scanning %s for PDF files", config.input.path)
        directories = self.plan(config)
        if not directories:
            logger.warning("No directories containing PDF files were found")
            return summarize([], start)
        logger.info("Found %d directories to process", len(directories))

        results = []
        for node in directories:
            results.append(await self._process_directory(node, output_dir, config))
        return summarize(results, start)

    async def _process_directory(self, node: DirNode, output_dir: Path, config: AppConfig) -> TaskResult:
        logger = self._context.logger
        events = self._context.events
        folder = node.dir_path.name
        output = output_dir / f"{folder}{PDF_SUFFIX}"

        if not config.options.overwrite and output.exists():
            logger.info("Skipping existing file %s", output)
            result = TaskResult(success=True, source_path=node.dir_path, output_path=output, skipped=True)
            events.emit("merge:skip", result)
            return result

        logger.info("Merging %s (%d files)", folder, len(node.files))
        try:
            result = await asyncio.to_thread(self._merger.merge, node.files, output, source=node.dir_path)
        except Exception as exc:
            result = TaskResult.failure(node.dir_path, str(exc) or type(exc).__name__, output_path=output)
        if result.success:
            logger.info("Merged %s into %s", folder, output)
        else:
            logger.error("Failed to merge %s: %s", folder, result.error)
        events.emit("merge:complete", result)
        return result

    async def merge_files(self, files: Sequence[Path], output: Path) -> TaskResult:
        self._context.logger.info("Merging %d files into %s", len(files), output)
        return await asyncio.to_thread(self._merger.merge, list(files), output)

    def update_config(self, overrides: Mapping[str, Any]) -> AppConfig:
        self._config = apply_overrides(self._config, overrides)
        self._merger.update_config(self._config)
        return self._config


__all__ = [
    "COMPRESSION_LEVELS",
    "MergerService",
    "PdfMerger",
    "compression_quality",
]
