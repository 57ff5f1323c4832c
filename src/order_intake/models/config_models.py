from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the order intake service.

These are the typed, immutable configuration structures passed into the
validation engine and the outer layers. The YAML loader lives in
order_intake.config.loader and builds these from validated data.

Keyword sets are stored already normalized (see validation.headers) so the
column resolver can do plain substring checks.
"""

__all__ = [
    "FieldRole",
    "ColumnKeywords",
    "ValidationRules",
    "DatabaseConfig",
    "ApiConfig",
    "AppConfig",
]


class FieldRole(Enum):
    """Semantic field a spreadsheet column may represent."""
    PRODUCT_CODE = "product_code"
    QUANTITY = "quantity"
    PRICE = "price"


@dataclass(frozen=True)
class ColumnKeywords:
    """Keyword substrings per role used to recognise header columns.

    Every role must own at least one keyword; an empty tuple would make the
    role impossible to resolve, so construction rejects it.
    """
    product_code: tuple[str, ...] = ("sku", "codartprov", "codigoproducto")
    quantity: tuple[str, ...] = ("cantidad", "cant", "solicitad")
    price: tuple[str, ...] = ("precio", "valor", "unitario")

    def __post_init__(self) -> None:
        for role in FieldRole:
            if not self.for_role(role):
                raise ValueError(f"keyword set for role '{role.value}' must not be empty")

    def for_role(self, role: FieldRole) -> tuple[str, ...]:
        return getattr(self, role.value)


@dataclass(frozen=True)
class ValidationRules:
    """Row-level business rule parameters."""
    code_min_digits: int = 6
    code_max_digits: int = 8
    # 最初の不正行で打ち切る (False なら全行評価して診断を揃える)
    stop_at_first_failure: bool = True

    def __post_init__(self) -> None:
        if self.code_min_digits < 1 or self.code_max_digits < self.code_min_digits:
            raise ValueError(
                f"invalid code digit range: {self.code_min_digits}..{self.code_max_digits}"
            )


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ApiConfig:
    """HTTP boundary settings."""
    tokens: dict[str, str] = field(default_factory=dict)  # bearer token -> client name
    jwt_secret: str | None = None  # HS256 signing secret shared with the login service
    jwt_client_claim: str = "username"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    columns: ColumnKeywords = field(default_factory=ColumnKeywords)
    rules: ValidationRules = field(default_factory=ValidationRules)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
