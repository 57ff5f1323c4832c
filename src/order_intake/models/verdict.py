from __future__ import annotations

from dataclasses import dataclass, field

from .config_models import FieldRole
from .order_record import OrderStatus
from .row_outcome import RowOutcome

"""Validation result models.

ColumnIndexSet is built once per sheet by the column resolver and reused for
every data row. OrderVerdict is what the reducer hands back to callers.
"""

__all__ = [
    "ColumnIndexSet",
    "OrderVerdict",
]


@dataclass(frozen=True)
class ColumnIndexSet:
    """Candidate column indexes per role, in left-to-right header order."""
    product_code: tuple[int, ...]
    quantity: tuple[int, ...]
    price: tuple[int, ...]

    def for_role(self, role: FieldRole) -> tuple[int, ...]:
        return getattr(self, role.value)

    def missing_roles(self) -> list[FieldRole]:
        return [role for role in FieldRole if not self.for_role(role)]


@dataclass(frozen=True)
class OrderVerdict:
    """Order-level outcome of validating one sheet."""
    status: OrderStatus  # APPROVED or ERROR, never PENDING
    columns: ColumnIndexSet
    outcomes: list[RowOutcome] = field(default_factory=list)  # evaluated rows only

    @property
    def approved(self) -> bool:
        return self.status is OrderStatus.APPROVED

    @property
    def rows_evaluated(self) -> int:
        return len(self.outcomes)

    @property
    def first_failure(self) -> RowOutcome | None:
        for outcome in self.outcomes:
            if not outcome.passed:
                return outcome
        return None
