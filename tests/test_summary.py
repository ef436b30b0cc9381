import time
from pathlib import Path

import pytest

from mark2pdf.models import FailedOperation, TaskResult
from mark2pdf.summary import summarize


def test_summary_counts_and_rate() -> None:
    results = [
        TaskResult(success=True, source_path=Path("a.md"), output_path=Path("a.pdf")),
        TaskResult(success=True, source_path=Path("b.md"), output_path=Path("b.pdf")),
        TaskResult.failure(Path("c.md"), "boom", output_path=Path("c.pdf")),
    ]
    summary = summarize(results, time.perf_counter(), skipped=4)
    assert (summary.total, summary.success, summary.failed) == (3, 2, 1)
    assert summary.success + summary.failed == summary.total
    assert summary.success_rate == pytest.approx(66.67, abs=0.01)
    assert summary.failed_operations == [FailedOperation(path="c.pdf", error="boom")]
    assert summary.skipped == 4
    assert summary.duration_ms >= 0


def test_summary_empty_run() -> None:
    summary = summarize([], time.perf_counter())
    assert summary.total == 0
    assert summary.success_rate == 0
    assert summary.failed_operations == []


def test_failed_operation_falls_back_to_source_and_unknown_error() -> None:
    result = TaskResult(success=False, source_path=Path("docs/a.md"))
    summary = summarize([result], time.perf_counter())
    assert summary.failed_operations == [FailedOperation(path=str(Path("docs/a.md")), error="Unknown error")]
