from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig
from ..models.order_record import OrderRecord, OrderStatus

"""Order persistence.

Two implementations share one small interface:

- PostgresOrderStore: live mode, one short psycopg2 connection per call,
  explicit commit / rollback around each statement.
- InMemoryOrderStore: mock mode (tests, ``serve --memory``, local demos).

The validation flow only needs ``get`` and ``update_status``; the HTTP layer
also uses ``add`` and ``list``. Orders are never deleted.
"""

__all__ = [
    "OrderStoreError",
    "OrderStore",
    "InMemoryOrderStore",
    "PostgresOrderStore",
    "SCHEMA_SQL",
    "build_dsn",
]

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS orders (
    id TEXT PRIMARY KEY,
    client TEXT NOT NULL,
    filename TEXT NOT NULL,
    mime_type TEXT,
    content BYTEA NOT NULL,
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'approved', 'error'))
)
"""

_COLUMNS = "id, client, filename, mime_type, content, uploaded_at, status"


class OrderStoreError(Exception):
    """Raised when the backing store fails (connection, SQL, driver)."""


class OrderStore(ABC):
    """Interface shared by the store implementations."""
    kind = "abstract"

    @abstractmethod
    def add(self, record: OrderRecord) -> None:
        ...

    @abstractmethod
    def get(self, order_id: str) -> OrderRecord | None:
        ...

    @abstractmethod
    def list(self) -> list[OrderRecord]:
        ...

    @abstractmethod
    def update_status(self, order_id: str, status: OrderStatus) -> bool:
        """Overwrite the status; False when the order does not exist."""


class InMemoryOrderStore(OrderStore):
    kind = "memory"

    def __init__(self) -> None:
        self._orders: dict[str, OrderRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: OrderRecord) -> None:
        with self._lock:
            if record.id in self._orders:
                raise OrderStoreError(f"duplicate order id: {record.id}")
            self._orders[record.id] = record

    def get(self, order_id: str) -> OrderRecord | None:
        with self._lock:
            return self._orders.get(order_id)

    def list(self) -> list[OrderRecord]:
        with self._lock:
            return sorted(self._orders.values(), key=lambda r: r.uploaded_at)

    def update_status(self, order_id: str, status: OrderStatus) -> bool:
        with self._lock:
            record = self._orders.get(order_id)
            if record is None:
                return False
            self._orders[order_id] = record.with_status(status)
            return True


def build_dsn(db_cfg: DatabaseConfig) -> str:
    """Resolve the connection string.

    Priority:
        1. DATABASE_URL / PGDSN environment variables (whole DSN)
        2. config ``database.dsn``
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back
           to the matching ``database`` config values, then libpq defaults
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _row_to_record(row: tuple[Any, ...]) -> OrderRecord:
    order_id, client, filename, mime_type, content, uploaded_at, status = row
    return OrderRecord(
        id=order_id,
        client=client,
        filename=filename,
        mime_type=mime_type,
        content=bytes(content),  # psycopg2 returns memoryview for BYTEA
        uploaded_at=uploaded_at,
        status=OrderStatus(status),
    )


class PostgresOrderStore(OrderStore):
    """PostgreSQL-backed store.

    ``connect`` is a zero-argument factory returning a DB-API connection;
    by default it opens ``psycopg2.connect(dsn)``.
    """
    kind = "postgres"

    def __init__(self, dsn: str | None = None, connect: Callable[[], Any] | None = None) -> None:
        if connect is None:
            if dsn is None:
                raise ValueError("either dsn or connect is required")
            connect = lambda: psycopg2.connect(dsn)  # noqa: E731
        self._connect = connect

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        try:
            conn = self._connect()
        except psycopg2.Error as e:
            raise OrderStoreError(f"cannot connect to database: {e}") from e
        cur = None
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise OrderStoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            if cur is not None:
                cur.close()
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)

    def add(self, record: OrderRecord) -> None:
        with self._cursor() as cur:
            cur.execute(
                f"INSERT INTO orders ({_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s)",
                (
                    record.id,
                    record.client,
                    record.filename,
                    record.mime_type,
                    psycopg2.Binary(record.content),
                    record.uploaded_at,
                    record.status.value,
                ),
            )

    def get(self, order_id: str) -> OrderRecord | None:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM orders WHERE id = %s", (order_id,))
            row = cur.fetchone()
        return _row_to_record(row) if row else None

    def list(self) -> list[OrderRecord]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM orders ORDER BY uploaded_at")
            rows = cur.fetchall()
        return [_row_to_record(r) for r in rows]

    def update_status(self, order_id: str, status: OrderStatus) -> bool:
        with self._cursor() as cur:
            cur.execute("UPDATE orders SET status = %s WHERE id = %s", (status.value, order_id))
            return cur.rowcount == 1
