from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RowOutcome model.

RowOutcome is the result of validating one data row: the values picked from
the candidate columns, the cleaned product code, and the three independent
checks. Only the combined ``passed`` flag drives the order status; the rest
is diagnostics for callers that want to know why a row failed.
"""

__all__ = [
    "RowOutcome",
]


@dataclass(frozen=True)
class RowOutcome:
    """Validation result for a single data row."""
    row_number: int  # sheet row number, 1-based (header = 1, first data row = 2)
    raw_code: Any
    code: str  # canonical digit-only code
    quantity: float
    price: float
    code_ok: bool
    quantity_ok: bool
    price_ok: bool

    @property
    def passed(self) -> bool:
        return self.code_ok and self.quantity_ok and self.price_ok

    @property
    def failed_checks(self) -> list[str]:
        failed = []
        if not self.code_ok:
            failed.append("code")
        if not self.quantity_ok:
            failed.append("quantity")
        if not self.price_ok:
            failed.append("price")
        return failed
