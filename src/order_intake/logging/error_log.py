from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""JSON Lines error log for ``order-intake validate``.

Files that fail structurally (unreadable, empty, missing columns) are
buffered during the run and written on flush to
``logs/errors-YYYYMMDD-HHMMSS.log``, the stamp taken (UTC) at the first
flush that has something to write. Runs without failures leave no file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "FILE_LEVEL_ROW",
]

DEFAULT_LOGS_DIR = Path("logs")
FILE_LEVEL_ROW = -1


class ErrorLogBuffer:
    """Collects ErrorRecords for one CLI run; not shared across threads."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir or DEFAULT_LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._target: Path | None = None

    def __len__(self) -> int:
        return len(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def add_failure(self, file: str, error_type: str, message: str, row: int = FILE_LEVEL_ROW) -> ErrorRecord:
        record = ErrorRecord.create(file=file, row=row, error_type=error_type, message=message)
        self._pending.append(record)
        return record

    @property
    def target(self) -> Path:
        if self._target is None:
            name = f"errors-{datetime.now(UTC):%Y%m%d-%H%M%S}.log"
            self._target = self.logs_dir / name
        return self._target

    def flush(self) -> Path | None:
        """Append pending records to the log file and return its path (None if nothing pending)."""
        if not self._pending:
            return None
        path = self.target
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(f"{record.to_json_line()}\n" for record in self._pending)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(lines)
        self._pending = []
        return path
