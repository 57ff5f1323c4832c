from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ApiConfig, AppConfig, ColumnKeywords, DatabaseConfig, ValidationRules
from ..validation.headers import normalize_header

"""Config loader.

Responsibilities:
- Load the YAML config file (default config/order_intake.yml)
- Validate it against config_schema.json shipped next to this module
- Apply defaults for every omitted section
- Normalize column keywords the same way headers are normalized
- Merge API tokens from ORDER_INTAKE_API_TOKENS, JWT secret from JWT_SECRET

Database environment variables are resolved later, at connection time
(see order_intake.db.order_store.build_dsn).
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "TOKENS_ENV_VAR",
    "JWT_SECRET_ENV_VAR",
    "build_config",
    "load_config",
    "resolve_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/order_intake.yml")
TOKENS_ENV_VAR = "ORDER_INTAKE_API_TOKENS"
JWT_SECRET_ENV_VAR = "JWT_SECRET"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_keywords(raw: dict[str, Any]) -> ColumnKeywords:
    defaults = ColumnKeywords()
    values: dict[str, tuple[str, ...]] = {}
    for role_key in ("product_code", "quantity", "price"):
        if role_key not in raw:
            values[role_key] = getattr(defaults, role_key)
            continue
        normalized = tuple(normalize_header(k) for k in raw[role_key])
        # "." や "-" だけのキーワードは正規化後に空になり全列にマッチしてしまう
        if any(k == "" for k in normalized):
            raise ConfigError(f"config: keyword for '{role_key}' is empty after normalization")
        values[role_key] = normalized
    return ColumnKeywords(**values)


def _build_rules(raw: dict[str, Any]) -> ValidationRules:
    defaults = ValidationRules()
    try:
        return ValidationRules(
            code_min_digits=raw.get("code_min_digits", defaults.code_min_digits),
            code_max_digits=raw.get("code_max_digits", defaults.code_max_digits),
            stop_at_first_failure=raw.get("stop_at_first_failure", defaults.stop_at_first_failure),
        )
    except ValueError as e:
        raise ConfigError(f"config: {e}") from e


def _parse_token_env(value: str) -> dict[str, str]:
    """Parse "token=client,token2=client2"."""
    tokens: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        token, sep, client = item.partition("=")
        if not sep or not token.strip() or not client.strip():
            raise ConfigError(f"{TOKENS_ENV_VAR}: expected token=client, got '{item}'")
        tokens[token.strip()] = client.strip()
    return tokens


def build_config(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from already-parsed config data (schema validated here)."""
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )

    api_raw = data.get("api") or {}
    tokens = dict(api_raw.get("tokens") or {})
    env_tokens = os.getenv(TOKENS_ENV_VAR)
    if env_tokens:
        tokens.update(_parse_token_env(env_tokens))

    return AppConfig(
        columns=_build_keywords(data.get("columns") or {}),
        rules=_build_rules(data.get("validation") or {}),
        database=db,
        api=ApiConfig(
            tokens=tokens,
            jwt_secret=os.getenv(JWT_SECRET_ENV_VAR) or api_raw.get("jwt_secret"),
            jwt_client_claim=api_raw.get("jwt_client_claim", "username"),
        ),
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return build_config(data)


def resolve_config(path: Path | None = None) -> AppConfig:
    """Load an explicit config path, or the default path when it exists.

    An explicit path that does not exist is an error; a missing default file
    just means built-in defaults.
    """
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return build_config({})
