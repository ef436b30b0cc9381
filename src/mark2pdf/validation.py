"""Format and safety checks for configured filesystem paths."""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from pathlib import Path

MAX_PATH_LENGTH = 1024
INVALID_PATH_CHARS = frozenset('<>:"|?*')
VALID_PATH_RE = re.compile(r"[./]?[A-Za-z0-9/\-_.]+")
VALID_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]+")
DANGEROUS_PREFIXES: tuple[str, ...] = ("/etc", "/system", "/Windows", "/Program Files")


def is_valid_format(path: object) -> bool:
    if not isinstance(path, str) or not path:
        return False
    if len(path) > MAX_PATH_LENGTH:
        return False
    if any(char in INVALID_PATH_CHARS for char in path):
        return False
    return VALID_PATH_RE.fullmatch(path) is not None


def is_safe(resolved: str | Path) -> bool:
    """Reject the filesystem root and well-known system directories."""

    value = str(resolved)
    if value == os.sep or value == "/":
        return False
    return not any(value.startswith(prefix) for prefix in DANGEROUS_PREFIXES)


def validate_input(path: object) -> bool:
    # Existence is not checked; a missing input surfaces later as an I/O error.
    if not is_valid_format(path):
        return False
    try:
        resolved = Path(str(path)).resolve()
    except (OSError, RuntimeError):
        return False
    return is_safe(resolved)


def validate_output(path: object) -> bool:
    if not is_valid_format(path):
        return False
    try:
        resolved = Path(str(path)).resolve()
    except (OSError, RuntimeError):
        return False
    if not is_safe(resolved):
        return False
    parent = resolved.parent
    if parent.is_dir():
        return True
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return True


def validate_extensions(extensions: object) -> bool:
    if isinstance(extensions, (str, bytes)) or not isinstance(extensions, Sequence):
        return False
    if not extensions:
        return False
    for extension in extensions:
        if not isinstance(extension, str):
            return False
        if not extension.startswith(".") or len(extension) <= 1:
            return False
        if VALID_EXTENSION_RE.fullmatch(extension) is None:
            return False
    return True


__all__ = [
    "is_safe",
    "is_valid_format",
    "validate_extensions",
    "validate_input",
    "validate_output",
]
