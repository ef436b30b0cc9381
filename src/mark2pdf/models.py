"""Domain models for batch conversion and merge runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class TaskKind(str, Enum):
    CONVERT = "convert"
    MERGE = "merge"


@dataclass(frozen=True, slots=True)
class Task:
    """A single unit of work: one source file or one directory group."""

    source_path: Path
    target_path: Path
    kind: TaskKind = TaskKind.CONVERT


@dataclass(slots=True)
class TaskResult:
    """Outcome of exactly one task."""

    success: bool
    source_path: Path
    output_path: Path | None = None
    error: str | None = None
    duration_ms: int = 0
    processed_files: int = 0
    skipped: bool = False

    @classmethod
    def failure(cls, source_path: Path, error: str, *, output_path: Path | None = None, duration_ms: int = 0) -> "TaskResult":
        return cls(
            success=False,
            source_path=source_path,
            output_path=output_path,
            error=error,
            duration_ms=max(0, duration_ms),
        )


@dataclass(frozen=True, slots=True)
class FailedOperation:
    path: str
    error: str


@dataclass(slots=True)
class Summary:
    """Aggregate statistics for a finished run."""

    total: int = 0
    success: int = 0
    failed: int = 0
    duration_ms: int = 0
    success_rate: float = 0.0
    failed_operations: list[FailedOperation] = field(default_factory=list)
    skipped: int = 0


__all__ = [
    "FailedOperation",
    "Summary",
    "Task",
    "TaskKind",
    "TaskResult",
]
