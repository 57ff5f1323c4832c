from __future__ import annotations

from ..models.batch_result import BatchResult

"""SUMMARY line rendering for the CLI ``validate`` command."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: BatchResult) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY files={total}/{total} approved={a} rejected={r} failed={f}
    rows={rows} elapsed_sec={elapsed}

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> render_summary_line(BatchResult(2, 1, 0, 40, t, t, 1.5))
    'SUMMARY files=3/3 approved=2 rejected=1 failed=0 rows=40 elapsed_sec=1.5'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total}/{total} "
        f"approved={result.approved_files} "
        f"rejected={result.rejected_files} "
        f"failed={result.failed_files} "
        f"rows={result.total_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
