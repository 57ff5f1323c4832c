"""Order validation engine.

Pipeline: header normalization -> column resolution -> per-row cell
extraction, code cleaning and checks -> order verdict.
"""

from .columns import MissingColumnsError, resolve_columns
from .headers import normalize_header, normalize_headers
from .verdict import EmptySheetError, evaluate_sheet

__all__ = [
    "EmptySheetError",
    "MissingColumnsError",
    "evaluate_sheet",
    "normalize_header",
    "normalize_headers",
    "resolve_columns",
]
