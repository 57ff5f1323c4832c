from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.config_models import ColumnKeywords, ValidationRules
from ..models.order_record import OrderStatus
from ..models.row_outcome import RowOutcome
from ..models.verdict import OrderVerdict
from .columns import resolve_columns
from .errors import SheetError
from .headers import normalize_headers
from .rows import compile_code_pattern, validate_row

"""Order verdict: reduce row outcomes to one order status.

evaluate_sheet is a pure function of the sheet contents. It performs no I/O
and keeps no state between calls, so validating the same sheet twice always
gives the same verdict.
"""

__all__ = [
    "EmptySheetError",
    "data_rows",
    "evaluate_sheet",
]


class EmptySheetError(SheetError):
    """Raised when the sheet has no header row or no data rows."""
    error_type = "EMPTY_SHEET"


def data_rows(sheet: Sequence[Sequence[Any]]) -> list[tuple[int, Sequence[Any]]]:
    """Every row after the header, paired with its 1-based sheet row number.

    Blank rows are data rows too: their empty product code fails the row.
    """
    return [(offset + 2, row) for offset, row in enumerate(sheet[1:])]


def evaluate_sheet(
    sheet: Sequence[Sequence[Any]],
    keywords: ColumnKeywords | None = None,
    rules: ValidationRules | None = None,
) -> OrderVerdict:
    """Validate every data row of a raw sheet and derive the order status.

    Row 0 is the header row. Rows are validated in order; with
    ``rules.stop_at_first_failure`` (the default) evaluation stops at the
    first failing row, so ``verdict.outcomes`` ends with that row.

    Raises:
        EmptySheetError: fewer than 2 rows (no data row after the header)
        MissingColumnsError: a role matched no header column
    """
    keywords = keywords or ColumnKeywords()
    rules = rules or ValidationRules()

    if len(sheet) < 2:
        raise EmptySheetError(f"sheet has no data rows ({len(sheet)} row(s) total)")
    rows = data_rows(sheet)

    headers = normalize_headers(sheet[0])
    columns = resolve_columns(headers, keywords)
    code_pattern = compile_code_pattern(rules)

    outcomes: list[RowOutcome] = []
    failed = False
    for row_number, row in rows:
        outcome = validate_row(row, columns, rules, row_number=row_number, code_pattern=code_pattern)
        outcomes.append(outcome)
        if not outcome.passed:
            failed = True
            if rules.stop_at_first_failure:
                break

    status = OrderStatus.ERROR if failed else OrderStatus.APPROVED
    return OrderVerdict(status=status, columns=columns, outcomes=outcomes)
