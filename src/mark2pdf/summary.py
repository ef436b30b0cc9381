from __future__ import annotations

import time
from collections.abc import Sequence

from .models import FailedOperation, Summary, TaskResult

UNKNOWN_ERROR = "Unknown error"


def summarize(results: Sequence[TaskResult], start_time: float, *, skipped: int = 0) -> Summary:
    """Build run statistics; *start_time* is a ``time.perf_counter()`` reading."""

    total = len(results)
    success = sum(1 for result in results if result.success)
    failed = total - success
    duration_ms = max(0, int((time.perf_counter() - start_time) * 1000))
    success_rate = (success / total) * 100 if total > 0 else 0.0
    failed_operations = [
        FailedOperation(
            path=str(result.output_path or result.source_path),
            error=result.error or UNKNOWN_ERROR,
        )
        for result in results
        if not result.success
    ]
    return Summary(
        total=total,
        success=success,
        failed=failed,
        duration_ms=duration_ms,
        success_rate=success_rate,
        failed_operations=failed_operations,
        skipped=skipped,
    )


__all__ = ["summarize"]
