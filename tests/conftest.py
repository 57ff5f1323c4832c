# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from order_intake.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # 開発者環境の変数がテストに混入しないようにする
    for var in ("ORDER_INTAKE_API_TOKENS", "JWT_SECRET", "DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """columns:
  product_code: [sku, codartprov, "Código Producto"]
  quantity: [cantidad, cant, solicitad]
  price: [precio, valor, unitario]
validation:
  code_min_digits: 6
  code_max_digits: 8
  stop_at_first_failure: true
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: orders
api:
  tokens:
    tok-acme: acme
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "order_intake.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _write_xlsx(path: Path, rows: list[list[object]]) -> Path:
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Pedido", header=False, index=False)
    return path


@pytest.fixture()
def make_xlsx(temp_workdir: Path) -> Callable[..., Path]:
    """Factory writing a single-sheet workbook under data/ (row 0 = header)."""
    def _make(name: str, rows: list[list[object]]) -> Path:
        return _write_xlsx(temp_workdir / "data" / name, rows)
    return _make


def xlsx_bytes(tmp_dir: Path, rows: list[list[object]]) -> bytes:
    return _write_xlsx(tmp_dir / "payload.xlsx", rows).read_bytes()


@pytest.fixture()
def make_xlsx_bytes(tmp_path: Path) -> Callable[[list[list[object]]], bytes]:
    def _make(rows: list[list[object]]) -> bytes:
        return xlsx_bytes(tmp_path, rows)
    return _make
