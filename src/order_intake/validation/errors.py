from __future__ import annotations

"""Structural sheet errors.

These mean the file itself cannot be interpreted as an order. They are
reported to the caller and never retried; the order status is left as it
was. Row-level rule failures are not errors, they produce a rejected order.
"""

__all__ = [
    "SheetError",
]


class SheetError(Exception):
    """Base class for structural failures of an order spreadsheet."""
    error_type = "SHEET_ERROR"
