from __future__ import annotations

from collections.abc import Sequence

from ..models.config_models import ColumnKeywords, FieldRole
from ..models.verdict import ColumnIndexSet
from .errors import SheetError

"""Column resolution: normalized headers -> candidate columns per role.

Clients name their columns inconsistently ("sku", "codartprov",
"codigoproducto"), so a header matches a role when it contains any of the
role's keywords. Every match is kept, not just the first, which lets the
row validator fall back across duplicate columns when one of them is blank
on a given row.
"""

__all__ = [
    "MissingColumnsError",
    "resolve_columns",
]


class MissingColumnsError(SheetError):
    """Raised when one or more roles matched no header column."""
    error_type = "MISSING_COLUMNS"

    def __init__(self, missing: Sequence[FieldRole], headers: Sequence[str] | None = None) -> None:
        self.missing = list(missing)
        self.headers = list(headers or [])
        names = ", ".join(role.value for role in self.missing)
        super().__init__(f"required columns not found: {names}")


def _matching_indexes(headers: Sequence[str], keywords: Sequence[str]) -> tuple[int, ...]:
    return tuple(i for i, h in enumerate(headers) if any(k in h for k in keywords))


def resolve_columns(headers: Sequence[str], keywords: ColumnKeywords) -> ColumnIndexSet:
    """Map normalized headers to candidate column indexes for every role.

    Raises:
        MissingColumnsError: if any role has no candidate column
    """
    columns = ColumnIndexSet(
        product_code=_matching_indexes(headers, keywords.product_code),
        quantity=_matching_indexes(headers, keywords.quantity),
        price=_matching_indexes(headers, keywords.price),
    )
    missing = columns.missing_roles()
    if missing:
        raise MissingColumnsError(missing, headers)
    return columns
