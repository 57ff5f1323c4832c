from __future__ import annotations

import csv
import io
import mimetypes
from pathlib import Path
from typing import Any

import pandas as pd

from ..validation.errors import SheetError

"""Sheet reader: stored binary payload -> raw rows.

Only the first sheet of a workbook is read. Row 0 of the result is the
header row; cells keep the type pandas gives them (str, int, float,
Timestamp) and missing cells become None. No header interpretation happens
here, that is the validation engine's job.

CSV payloads are read as text (dtype=str) so product codes keep their
leading zeros.
"""

__all__ = [
    "UnreadableFileError",
    "CSV_MIME_TYPES",
    "is_csv_payload",
    "read_sheet",
    "read_sheet_file",
]

CSV_MIME_TYPES = {"text/csv", "application/csv", "text/comma-separated-values"}
_CSV_ENCODINGS = ("utf-8-sig", "latin-1")
_CSV_DELIMITERS = ",;\t|"


class UnreadableFileError(SheetError):
    """Raised when the payload cannot be decoded into tabular data."""
    error_type = "UNREADABLE_FILE"


def is_csv_payload(filename: str | None, mime_type: str | None) -> bool:
    if mime_type and mime_type.split(";")[0].strip().lower() in CSV_MIME_TYPES:
        return True
    return bool(filename) and str(filename).lower().endswith(".csv")


def _frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    df = df.astype(object)
    return df.where(pd.notna(df), None).values.tolist()


def _decode_csv(content: bytes) -> str:
    last_error: Exception | None = None
    for encoding in _CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
    raise UnreadableFileError(f"cannot decode csv payload: {last_error}")


def _sniff_delimiter(text: str) -> str:
    sample = "\n".join(text.splitlines()[:20])
    try:
        return csv.Sniffer().sniff(sample, delimiters=_CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _read_csv(content: bytes) -> pd.DataFrame | None:
    text = _decode_csv(content)
    if not text.strip():
        return None
    sep = _sniff_delimiter(text)
    # 行ごとに列数が違ってもよい: 最長行に合わせて短い行は NaN で埋める
    width = max((len(r) for r in csv.reader(io.StringIO(text), delimiter=sep)), default=0) or 1
    return pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        sep=sep,
    )


def read_sheet(content: bytes, filename: str | None = None, mime_type: str | None = None) -> list[list[Any]]:
    """Decode a spreadsheet payload into a list of raw rows.

    Parameters
    ----------
    content: file bytes as uploaded
    filename: original filename (used to recognise CSV)
    mime_type: MIME type sent at upload time (used to recognise CSV)

    Raises:
        UnreadableFileError: payload is empty, corrupt or not a supported format
    """
    if not content:
        raise UnreadableFileError("file is empty")
    try:
        if is_csv_payload(filename, mime_type):
            df = _read_csv(content)
            if df is None:
                return []
        else:
            df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except UnreadableFileError:
        raise
    except pd.errors.EmptyDataError:
        # 空の CSV: ヘッダすら無いので 0 行として返し、後段で EmptySheetError
        return []
    except Exception as e:
        raise UnreadableFileError(f"cannot read '{filename or 'payload'}' as a spreadsheet: {e}") from e
    return _frame_to_rows(df)


def read_sheet_file(path: Path) -> list[list[Any]]:
    """Read a local spreadsheet file (CLI use)."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return read_sheet(path.read_bytes(), filename=path.name, mime_type=mime_type)
