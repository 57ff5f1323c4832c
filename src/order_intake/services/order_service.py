from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..db.order_store import OrderStore
from ..excel.reader import read_sheet
from ..models.config_models import AppConfig, ColumnKeywords, ValidationRules
from ..models.order_record import OrderRecord, OrderStatus
from ..models.verdict import OrderVerdict
from ..validation.verdict import evaluate_sheet

logger = logging.getLogger(__name__)

"""Order use-cases shared by the HTTP API.

validate_payload is the pure part: bytes in, verdict out. OrderService wraps
it with the read-order / write-status round trip. That round trip is a
read-modify-write on the status field, so validations of the same order are
serialized with a per-order lock; different orders validate in parallel.
"""

__all__ = [
    "OrderNotFoundError",
    "InvalidStatusError",
    "ValidationOutcome",
    "OrderService",
    "parse_status",
    "validate_payload",
]


class OrderNotFoundError(Exception):
    """Raised when an order identifier is unknown to the store."""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"order not found: {order_id}")


class InvalidStatusError(ValueError):
    """Raised when a status update names an unknown status."""


@dataclass(frozen=True)
class ValidationOutcome:
    order_id: str
    previous_status: OrderStatus
    verdict: OrderVerdict

    @property
    def status(self) -> OrderStatus:
        return self.verdict.status


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatusError(f"invalid status '{value}' (expected one of: {allowed})") from e


def validate_payload(
    content: bytes,
    filename: str | None = None,
    mime_type: str | None = None,
    keywords: ColumnKeywords | None = None,
    rules: ValidationRules | None = None,
) -> OrderVerdict:
    """Decode a spreadsheet payload and evaluate it.

    Raises:
        UnreadableFileError, EmptySheetError, MissingColumnsError
    """
    sheet = read_sheet(content, filename=filename, mime_type=mime_type)
    return evaluate_sheet(sheet, keywords, rules)


class OrderService:
    """Upload, listing, download, status update and validation of orders."""

    def __init__(self, store: OrderStore, config: AppConfig | None = None) -> None:
        self.store = store
        self.config = config or AppConfig()
        # order id -> [lock, number of callers holding or waiting on it]
        self._locks: dict[str, list[Any]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _order_lock(self, order_id: str) -> Iterator[None]:
        """Hold the lock of one order; the entry is dropped once nobody uses it."""
        with self._locks_guard:
            entry = self._locks.setdefault(order_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[order_id]

    def upload(self, client: str, filename: str, mime_type: str | None, content: bytes) -> OrderRecord:
        record = OrderRecord.create(
            order_id=uuid.uuid4().hex,
            client=client,
            filename=filename,
            mime_type=mime_type,
            content=content,
        )
        self.store.add(record)
        logger.info("order uploaded id=%s client=%s file=%s bytes=%d", record.id, client, filename, len(content))
        return record

    def list_orders(self) -> list[OrderRecord]:
        return self.store.list()

    def get_order(self, order_id: str) -> OrderRecord:
        record = self.store.get(order_id)
        if record is None:
            raise OrderNotFoundError(order_id)
        return record

    def update_status(self, order_id: str, status: str | OrderStatus) -> OrderStatus:
        """Explicit, unconstrained status overwrite."""
        new_status = status if isinstance(status, OrderStatus) else parse_status(status)
        with self._order_lock(order_id):
            if not self.store.update_status(order_id, new_status):
                raise OrderNotFoundError(order_id)
        logger.info("order status set id=%s status=%s", order_id, new_status.value)
        return new_status

    def validate(self, order_id: str) -> ValidationOutcome:
        """Re-validate the stored payload and overwrite the status.

        Structural errors propagate and leave the stored status untouched.
        """
        with self._order_lock(order_id):
            record = self.get_order(order_id)
            verdict = validate_payload(
                record.content,
                filename=record.filename,
                mime_type=record.mime_type,
                keywords=self.config.columns,
                rules=self.config.rules,
            )
            for outcome in verdict.outcomes:
                if outcome.passed:
                    logger.debug("order=%s row=%d ok", order_id, outcome.row_number)
                else:
                    logger.debug(
                        "order=%s row=%d invalid checks=%s code=%r",
                        order_id,
                        outcome.row_number,
                        ",".join(outcome.failed_checks),
                        outcome.raw_code,
                    )
            if not self.store.update_status(order_id, verdict.status):
                raise OrderNotFoundError(order_id)
        logger.info(
            "order validated id=%s status=%s rows_evaluated=%d",
            order_id,
            verdict.status.value,
            verdict.rows_evaluated,
        )
        return ValidationOutcome(order_id=order_id, previous_status=record.status, verdict=verdict)
