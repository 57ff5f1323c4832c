from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum

"""OrderRecord domain model and OrderStatus enum.

An OrderRecord is one uploaded purchase-order spreadsheet together with the
metadata needed to serve it back and the outcome of its last validation.

State transitions:
    (upload) -> pending
    any --validate, all rows pass--> approved
    any --validate, some row fails--> error
    any --explicit status update--> any
There is no terminal state; validation can be repeated.
"""

__all__ = [
    "OrderStatus",
    "OrderRecord",
]


class OrderStatus(Enum):
    """Status of an order through its validation lifecycle.

    - PENDING: uploaded, never validated (or reset by an explicit update)
    - APPROVED: last validation found every data row valid
    - ERROR: last validation found at least one invalid row
    """
    PENDING = "pending"
    APPROVED = "approved"
    ERROR = "error"


@dataclass(frozen=True)
class OrderRecord:
    """Persisted purchase order."""
    id: str
    client: str
    filename: str
    mime_type: str | None
    content: bytes
    uploaded_at: datetime
    status: OrderStatus = OrderStatus.PENDING

    @staticmethod
    def create(order_id: str, client: str, filename: str, mime_type: str | None, content: bytes) -> OrderRecord:
        """Create a new pending order stamped with the current UTC time."""
        return OrderRecord(
            id=order_id,
            client=client,
            filename=filename,
            mime_type=mime_type,
            content=content,
            uploaded_at=datetime.now(UTC),
            status=OrderStatus.PENDING,
        )

    def with_status(self, status: OrderStatus) -> OrderRecord:
        return replace(self, status=status)

    def to_summary(self) -> dict[str, object]:
        """Metadata view without the binary payload (used by listings)."""
        return {
            "id": self.id,
            "client": self.client,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "uploaded_at": self.uploaded_at.isoformat().replace("+00:00", "Z"),
            "status": self.status.value,
            "size": len(self.content),
        }
