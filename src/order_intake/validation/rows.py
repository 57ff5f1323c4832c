from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

from ..models.config_models import ValidationRules
from ..models.row_outcome import RowOutcome
from ..models.verdict import ColumnIndexSet
from .cells import clean_product_code, coerce_number, first_present_value

"""Row validation.

A data row passes when all three hold:
- the cleaned product code is rules.code_min_digits..code_max_digits digits
- the quantity is a finite number > 0
- the price is a finite number >= 0

A missing value is still coerced (to NaN) and fails its check.
"""

__all__ = [
    "compile_code_pattern",
    "validate_row",
]


def compile_code_pattern(rules: ValidationRules) -> re.Pattern[str]:
    return re.compile(rf"[0-9]{{{rules.code_min_digits},{rules.code_max_digits}}}")


def validate_row(
    row: Sequence[Any],
    columns: ColumnIndexSet,
    rules: ValidationRules,
    row_number: int,
    code_pattern: re.Pattern[str] | None = None,
) -> RowOutcome:
    """Validate one data row against the resolved candidate columns.

    Parameters
    ----------
    row: raw cells of the data row
    columns: candidate columns resolved from the header row
    rules: business rule parameters
    row_number: 1-based sheet row number, only used for reporting
    code_pattern: precompiled code regex (evaluate_sheet compiles it once per sheet)
    """
    pattern = code_pattern or compile_code_pattern(rules)

    raw_code = first_present_value(row, columns.product_code)
    code = clean_product_code(raw_code)
    quantity = coerce_number(first_present_value(row, columns.quantity))
    price = coerce_number(first_present_value(row, columns.price))

    return RowOutcome(
        row_number=row_number,
        raw_code=raw_code,
        code=code,
        quantity=quantity,
        price=price,
        code_ok=pattern.fullmatch(code) is not None,
        quantity_ok=math.isfinite(quantity) and quantity > 0,
        price_ok=math.isfinite(price) and price >= 0,
    )
