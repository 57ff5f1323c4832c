from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""Batch validation result models (CLI ``validate`` command).

A local file ends in one of three states: approved (every data row valid),
rejected (some row invalid, the order would be marked ``error``) or failed
(structural error: unreadable, empty, missing columns).
"""

__all__ = [
    "FileOutcome",
    "FileResult",
    "BatchResult",
]


class FileOutcome(Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class FileResult:
    """Per-file validation result."""
    file_name: str
    outcome: FileOutcome
    rows_evaluated: int
    elapsed_seconds: float
    first_failed_row: int | None = None  # rejected only
    failed_checks: tuple[str, ...] = ()  # rejected only
    error: str | None = None  # failed only


@dataclass(frozen=True)
class BatchResult:
    """Aggregated results for one CLI run."""
    approved_files: int
    rejected_files: int
    failed_files: int
    total_rows: int  # rows evaluated across all files
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_results: list[FileResult] | None = None

    @property
    def total_files(self) -> int:
        return self.approved_files + self.rejected_files + self.failed_files
