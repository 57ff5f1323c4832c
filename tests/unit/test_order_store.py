from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import psycopg2
import pytest

from order_intake.db.order_store import (
    InMemoryOrderStore,
    OrderStore,
    OrderStoreError,
    PostgresOrderStore,
    build_dsn,
)
from order_intake.models.config_models import DatabaseConfig
from order_intake.models.order_record import OrderRecord, OrderStatus


def _record(order_id: str = "o1", offset: int = 0) -> OrderRecord:
    return OrderRecord(
        id=order_id,
        client="acme",
        filename="pedido.xlsx",
        mime_type="application/octet-stream",
        content=b"payload",
        uploaded_at=datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=offset),
    )


class TestInMemoryOrderStore:
    def test_add_get_roundtrip(self):
        store = InMemoryOrderStore()
        store.add(_record())
        assert store.get("o1") == _record()
        assert store.get("missing") is None

    def test_duplicate_id_rejected(self):
        store = InMemoryOrderStore()
        store.add(_record())
        with pytest.raises(OrderStoreError):
            store.add(_record())

    def test_list_sorted_by_upload_time(self):
        store = InMemoryOrderStore()
        store.add(_record("late", offset=5))
        store.add(_record("early", offset=0))
        assert [r.id for r in store.list()] == ["early", "late"]

    def test_update_status(self):
        store = InMemoryOrderStore()
        store.add(_record())
        assert store.update_status("o1", OrderStatus.APPROVED) is True
        assert store.get("o1").status is OrderStatus.APPROVED
        assert store.update_status("missing", OrderStatus.ERROR) is False


def _fake_connection(rows=None, rowcount=1):
    conn = MagicMock()
    cur = MagicMock()
    cur.fetchone.return_value = rows[0] if rows else None
    cur.fetchall.return_value = rows or []
    cur.rowcount = rowcount
    conn.cursor.return_value = cur
    return conn, cur


class TestPostgresOrderStore:
    def test_requires_dsn_or_connect(self):
        with pytest.raises(ValueError):
            PostgresOrderStore()

    def test_add_commits_and_closes(self):
        conn, cur = _fake_connection()
        store = PostgresOrderStore(connect=lambda: conn)
        store.add(_record())
        sql, params = cur.execute.call_args.args
        assert sql.startswith("INSERT INTO orders")
        assert params[0] == "o1"
        assert params[-1] == "pending"
        conn.commit.assert_called_once()
        conn.close.assert_called_once()
        cur.close.assert_called_once()

    def test_get_maps_row(self):
        row = ("o1", "acme", "pedido.xlsx", None, memoryview(b"xyz"), datetime(2024, 1, 1, tzinfo=UTC), "approved")
        conn, cur = _fake_connection(rows=[row])
        store = PostgresOrderStore(connect=lambda: conn)
        record = store.get("o1")
        assert record.content == b"xyz"
        assert record.status is OrderStatus.APPROVED
        assert cur.execute.call_args.args[1] == ("o1",)

    def test_get_missing_returns_none(self):
        conn, _ = _fake_connection()
        assert PostgresOrderStore(connect=lambda: conn).get("nope") is None

    def test_update_status_uses_rowcount(self):
        conn, cur = _fake_connection(rowcount=0)
        store = PostgresOrderStore(connect=lambda: conn)
        assert store.update_status("nope", OrderStatus.ERROR) is False
        assert cur.execute.call_args.args[1] == ("error", "nope")

    def test_driver_error_rolls_back(self):
        conn, cur = _fake_connection()
        cur.execute.side_effect = psycopg2.OperationalError("boom")
        store = PostgresOrderStore(connect=lambda: conn)
        with pytest.raises(OrderStoreError, match="boom"):
            store.list()
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()

    def test_connect_failure_wrapped(self):
        def _fail():
            raise psycopg2.OperationalError("no server")

        store = PostgresOrderStore(connect=_fail)
        with pytest.raises(OrderStoreError, match="cannot connect"):
            store.ensure_schema()


def test_build_dsn_prefers_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
    assert build_dsn(DatabaseConfig(dsn="ignored")) == "postgresql://u@h/db"


def test_build_dsn_config_dsn():
    assert build_dsn(DatabaseConfig(dsn="host=db dbname=x")) == "host=db dbname=x"


def test_build_dsn_env_overrides_config(monkeypatch):
    monkeypatch.setenv("PGHOST", "envhost")
    dsn = build_dsn(DatabaseConfig(host="cfghost", port=6543, user="app", password="pw", database="orders"))
    assert dsn == "host=envhost port=6543 user=app dbname=orders password=pw"


def test_build_dsn_defaults():
    assert build_dsn(DatabaseConfig()) == "host=localhost port=5432 user=postgres dbname=postgres"


def test_incomplete_store_cannot_be_instantiated():
    class ReadOnlyStore(OrderStore):
        def get(self, order_id):
            return None

        def list(self):
            return []

    with pytest.raises(TypeError):
        ReadOnlyStore()
