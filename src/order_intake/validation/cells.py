from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

"""Cell level helpers: emptiness, text coercion, candidate lookup, code
cleaning and numeric coercion.

None of these raise on bad input. A value that cannot be used comes back as
an empty string (text) or NaN (numbers) and fails the row check that
consumes it.
"""

__all__ = [
    "is_empty_cell",
    "cell_text",
    "first_present_value",
    "clean_product_code",
    "coerce_number",
]

_WHITESPACE_RE = re.compile(r"\s+")
_VARIANT_SUFFIX_RE = re.compile(r"/[0-9]+$")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


def is_empty_cell(value: Any) -> bool:
    """True for absent cells: None, NaN (pandas missing marker) or ''."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value == ""


def cell_text(value: Any) -> str:
    """Coerce a cell to text the way a spreadsheet displays it.

    Integral floats lose their ``.0`` so that a numeric code cell such as
    1234567.0 (pandas upcasts int columns holding blanks) stays 1234567.
    Large integral floats are written out in full, never in exponent form:
    1e21 becomes "1000000000000000000000" rather than "1e+21". Codes that
    long fail the digit-length rule whichever way they are written.
    """
    if is_empty_cell(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def first_present_value(row: Sequence[Any], indexes: Sequence[int]) -> Any | None:
    """Return the first non-empty cell among the candidate columns, in order.

    Indexes beyond the end of a short row count as empty cells.
    """
    for idx in indexes:
        if idx >= len(row):
            continue
        value = row[idx]
        if not is_empty_cell(value):
            return value
    return None


def clean_product_code(raw: Any) -> str:
    """Canonical digit-only product code.

    Steps: trim, drop internal whitespace, drop a trailing "/<digits>"
    variant suffix, then drop every remaining non-digit.

    >>> clean_product_code(" 00012345/2 ")
    '00012345'
    >>> clean_product_code("AB-123 456")
    '123456'
    """
    text = cell_text(raw).strip()
    text = _WHITESPACE_RE.sub("", text)
    text = _VARIANT_SUFFIX_RE.sub("", text)
    return _NON_DIGIT_RE.sub("", text)


def coerce_number(raw: Any) -> float:
    """Parse a cell as a plain decimal number, NaN when it is not one.

    Only the '.' decimal separator is understood; "5,50" is not a number.
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if not isinstance(raw, str):
        # int, float, numpy scalars, Decimal and friends
        try:
            return float(raw)
        except (TypeError, ValueError, OverflowError):
            return math.nan
    text = raw.strip()
    if not _DECIMAL_RE.match(text):
        return math.nan
    return float(text)
