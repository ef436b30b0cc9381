from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .context import RunContext


@dataclass(slots=True)
class DirNode:
    dir_path: Path
    files: list[Path] = field(default_factory=list)
    sub_dirs: list[int] = field(default_factory=list)


@dataclass(slots=True)
class FileTree:
    """Directory hierarchy stored as an arena; ``sub_dirs`` index into ``nodes``."""

    nodes: list[DirNode]

    ROOT = 0

    @property
    def root(self) -> DirNode:
        return self.nodes[self.ROOT]

    def children(self, index: int) -> list[DirNode]:
        return [self.nodes[child] for child in self.nodes[index].sub_dirs]

    def walk(self) -> Iterator[tuple[int, DirNode]]:
        """Yield ``(index, node)`` pairs depth first, parents before children."""

        stack = [self.ROOT]
        while stack:
            index = stack.pop()
            node = self.nodes[index]
            yield index, node
            stack.extend(reversed(node.sub_dirs))

    def all_files(self) -> list[Path]:
        return [path for _, node in self.walk() for path in node.files]


def normalize_extensions(extensions: str | Iterable[str]) -> frozenset[str]:
    if isinstance(extensions, str):
        extensions = (extensions,)
    return frozenset(extension.lower() for extension in extensions)


def apply_filters(
    files: Iterable[Path],
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> list[Path]:
    include_patterns = [re.compile(pattern) for pattern in include]
    exclude_patterns = [re.compile(pattern) for pattern in exclude]
    kept: list[Path] = []
    for path in files:
        text = str(path)
        if include_patterns and not any(pattern.search(text) for pattern in include_patterns):
            continue
        if any(pattern.search(text) for pattern in exclude_patterns):
            continue
        kept.append(path)
    return kept


class FileTreeScanner:
    def __init__(self, context: RunContext | None = None) -> None:
        self._context = context or RunContext.create()

    def scan(self, root: Path, extensions: str | Iterable[str]) -> list[Path]:
        """Return every matching file under *root*, without duplicates."""

        return list(dict.fromkeys(self.scan_tree(root, extensions).all_files()))

    def scan_tree(self, root: Path, extensions: str | Iterable[str]) -> FileTree:
        wanted = normalize_extensions(extensions)
        nodes = [DirNode(dir_path=Path(root))]
        pending = [0]
        while pending:
            index = pending.pop()
            node = nodes[index]
            try:
                entries = sorted(os.scandir(node.dir_path), key=lambda entry: entry.name)
            except OSError as exc:
                self._report_error(node.dir_path, exc)
                continue
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        nodes.append(DirNode(dir_path=Path(entry.path)))
                        child = len(nodes) - 1
                        node.sub_dirs.append(child)
                        pending.append(child)
                    elif entry.is_file() and os.path.splitext(entry.name)[1].lower() in wanted:
                        node.files.append(Path(entry.path))
                except OSError as exc:
                    self._report_error(Path(entry.path), exc)
        return FileTree(nodes=nodes)

    def _report_error(self, path: Path, exc: OSError) -> None:
        self._context.logger.warning("Failed to read directory %s: %s", path, exc)
        self._context.events.emit("scan:error", {"path": path, "error": str(exc)})


__all__ = [
    "DirNode",
    "FileTree",
    "FileTreeScanner",
    "apply_filters",
    "normalize_extensions",
]
