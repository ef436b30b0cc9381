from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path

from .config import AppConfig

PDF_SUFFIX = ".pdf"
NAME_PLACEHOLDER = "{name}"


def elapsed_ms(start: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading, never negative."""

    return max(0, int((time.perf_counter() - start) * 1000))


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, suffix=".tmp") as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def get_output_path(source: Path, config: AppConfig) -> Path:
    """Compute the PDF path a source file converts to.

    With ``maintain_dir_structure`` the source's directory relative to the
    input root is mirrored under the output root. ``rename_pattern``
    replaces ``{name}`` with the source stem.
    """

    input_root = Path(config.input.path).resolve()
    output_root = Path(config.output.path).resolve()
    source = source.resolve()
    stem = source.stem
    if config.output.rename_pattern:
        file_name = config.output.rename_pattern.replace(NAME_PLACEHOLDER, stem) + PDF_SUFFIX
    else:
        file_name = stem + PDF_SUFFIX
    if not config.output.maintain_dir_structure:
        return output_root / file_name
    try:
        relative_dir = source.parent.relative_to(input_root)
    except ValueError:
        relative_dir = Path()
    return output_root / relative_dir / file_name


__all__ = ["PDF_SUFFIX", "atomic_write_bytes", "elapsed_ms", "ensure_dir", "get_output_path"]
