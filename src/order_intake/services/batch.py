from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..excel.reader import read_sheet_file
from ..logging.error_log import ErrorLogBuffer
from ..models.batch_result import BatchResult, FileOutcome, FileResult
from ..models.config_models import AppConfig
from ..validation.errors import SheetError
from ..validation.verdict import evaluate_sheet
from .progress import BatchProgress

logger = logging.getLogger(__name__)

"""Offline batch validation of local spreadsheet files.

Each file is validated independently, exactly as an uploaded order would
be. Structural errors do not stop the batch: they are logged, recorded in
the error log buffer and counted as failed files.
"""

__all__ = [
    "ProcessingError",
    "SPREADSHEET_SUFFIXES",
    "collect_files",
    "validate_file",
    "validate_files",
]

SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".ods", ".csv"}


class ProcessingError(Exception):
    """Fatal error that prevents the batch from running."""


def collect_files(paths: Iterable[Path]) -> list[Path]:
    """Expand the given paths into spreadsheet files.

    Directories are scanned non-recursively for known spreadsheet suffixes;
    explicit files are taken as they are.

    Raises:
        ProcessingError: if a path does not exist or a directory can't be read
    """
    files: list[Path] = []
    for path in paths:
        if not path.exists():
            raise ProcessingError(f"path not found: {path}")
        if path.is_dir():
            try:
                found = sorted(
                    p for p in path.iterdir() if p.is_file() and p.suffix.lower() in SPREADSHEET_SUFFIXES
                )
            except OSError as e:
                raise ProcessingError(f"error reading directory {path}: {e}") from e
            files.extend(found)
        else:
            files.append(path)
    return files


def validate_file(path: Path, config: AppConfig, error_log: ErrorLogBuffer | None = None) -> FileResult:
    start = datetime.now(UTC)
    try:
        sheet = read_sheet_file(path)
        verdict = evaluate_sheet(sheet, config.columns, config.rules)
    except SheetError as e:
        elapsed = (datetime.now(UTC) - start).total_seconds()
        logger.error("file=%s %s: %s", path.name, e.error_type, e)
        if error_log is not None:
            error_log.add_failure(path.name, e.error_type, str(e))
        return FileResult(
            file_name=path.name,
            outcome=FileOutcome.FAILED,
            rows_evaluated=0,
            elapsed_seconds=elapsed,
            error=str(e),
        )
    except OSError as e:
        elapsed = (datetime.now(UTC) - start).total_seconds()
        logger.error("file=%s READ_ERROR: %s", path.name, e)
        if error_log is not None:
            error_log.add_failure(path.name, "READ_ERROR", str(e))
        return FileResult(
            file_name=path.name,
            outcome=FileOutcome.FAILED,
            rows_evaluated=0,
            elapsed_seconds=elapsed,
            error=str(e),
        )

    elapsed = (datetime.now(UTC) - start).total_seconds()
    failure = verdict.first_failure
    if failure is None:
        logger.info("file=%s approved rows=%d", path.name, verdict.rows_evaluated)
        return FileResult(
            file_name=path.name,
            outcome=FileOutcome.APPROVED,
            rows_evaluated=verdict.rows_evaluated,
            elapsed_seconds=elapsed,
        )
    logger.warning(
        "file=%s rejected row=%d checks=%s code=%r",
        path.name,
        failure.row_number,
        ",".join(failure.failed_checks),
        failure.raw_code,
    )
    return FileResult(
        file_name=path.name,
        outcome=FileOutcome.REJECTED,
        rows_evaluated=verdict.rows_evaluated,
        elapsed_seconds=elapsed,
        first_failed_row=failure.row_number,
        failed_checks=tuple(failure.failed_checks),
    )


def validate_files(paths: Iterable[Path], config: AppConfig, error_log: ErrorLogBuffer | None = None) -> BatchResult:
    """Validate every spreadsheet found under ``paths``.

    Raises:
        ProcessingError: for fatal errors that prevent processing
    """
    start_time = datetime.now(UTC)
    files = collect_files(paths)

    results: list[FileResult] = []
    with BatchProgress(files) as progress:
        for path in files:
            progress.begin(path)
            result = validate_file(path, config, error_log)
            results.append(result)
            progress.record(result)
    counts = progress.tally

    end_time = datetime.now(UTC)
    return BatchResult(
        approved_files=counts[FileOutcome.APPROVED],
        rejected_files=counts[FileOutcome.REJECTED],
        failed_files=counts[FileOutcome.FAILED],
        total_rows=sum(r.rows_evaluated for r in results),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_results=results,
    )
