"""Domain models for the order intake service.

This package contains the domain model classes used throughout the
application: configuration structures, persisted orders and validation
results.
"""

from .batch_result import BatchResult, FileOutcome, FileResult
from .config_models import ApiConfig, AppConfig, ColumnKeywords, DatabaseConfig, FieldRole, ValidationRules
from .order_record import OrderRecord, OrderStatus
from .row_outcome import RowOutcome
from .verdict import ColumnIndexSet, OrderVerdict

__all__ = [
    # Configuration models
    "ApiConfig",
    "AppConfig",
    "ColumnKeywords",
    "DatabaseConfig",
    "FieldRole",
    "ValidationRules",
    # Order models
    "OrderRecord",
    "OrderStatus",
    # Validation models
    "ColumnIndexSet",
    "OrderVerdict",
    "RowOutcome",
    # CLI batch models
    "BatchResult",
    "FileOutcome",
    "FileResult",
]
