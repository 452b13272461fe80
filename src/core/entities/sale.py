"""Finalized sale and offline queue entities."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.core.entities.cart import LineItem
from src.core.entities.customer import CustomerInfo
from src.core.entities.payment import PaymentMethod, PaymentTender
from src.core.exceptions import InvalidStateTransitionError

LOCAL_ID_PREFIX = "offline_"


def new_local_id() -> str:
    """Generate a client-side sale identifier (also the idempotency key)."""
    return f"{LOCAL_ID_PREFIX}{uuid4().hex}"


def is_local_id(value: str) -> bool:
    return value.startswith(LOCAL_ID_PREFIX)


class SyncState(str, Enum):
    """Whether the backend has acknowledged a sale."""

    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


class Sale(BaseModel):
    """Immutable record of a completed checkout."""

    model_config = ConfigDict(frozen=True)

    local_id: str = Field(default_factory=new_local_id)
    server_id: str | None = None
    items: tuple[LineItem, ...]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    tenders: tuple[PaymentTender, ...]
    amount_paid: Decimal
    change_due: Decimal = Decimal("0")
    split_payment: bool = False
    single_method: PaymentMethod | None = None
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    staff_id: int
    staff_name: str
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sync_state: SyncState = SyncState.PENDING

    @property
    def payment_method(self) -> str:
        if self.split_payment:
            return "split"
        if self.single_method is not None:
            return self.single_method.value
        return self.tenders[0].method.value if self.tenders else ""

    def _transition(self, target: SyncState, **update: Any) -> "Sale":
        if self.sync_state == SyncState.SYNCED:
            raise InvalidStateTransitionError(
                self.local_id, self.sync_state.value, target.value
            )
        return self.model_copy(update={"sync_state": target, **update})

    def mark_synced(self, server_id: str) -> "Sale":
        return self._transition(SyncState.SYNCED, server_id=server_id)

    def mark_failed(self) -> "Sale":
        return self._transition(SyncState.FAILED)

    def mark_pending(self) -> "Sale":
        return self._transition(SyncState.PENDING)

    def to_payload(self) -> dict[str, Any]:
        """Build the create-sale request body."""
        return {
            "localId": self.local_id,
            "items": [
                {
                    "productId": item.product_id,
                    "quantity": item.quantity,
                    "price": float(item.unit_price),
                    "total": float(item.line_total),
                }
                for item in self.items
            ],
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "total": float(self.total),
            "paymentMethod": self.payment_method,
            "amountPaid": float(self.amount_paid),
            "splitPayments": (
                [
                    {"method": t.method.value, "amount": float(t.amount)}
                    for t in self.tenders
                ]
                if self.split_payment
                else None
            ),
            "customerName": self.customer.name,
            "customerPhone": self.customer.phone,
            "customerEmail": self.customer.email,
            "customerAddress": self.customer.address,
            "notes": self.notes,
            "staffId": self.staff_id,
            "staffName": self.staff_name,
            "createdAt": self.created_at.isoformat(),
        }


class OfflineQueueEntry(BaseModel):
    """A sale waiting in the offline queue, with its sync history."""

    sale: Sale
    enqueued_at: datetime
    sequence: int = 0
    attempts: int = Field(default=0, ge=0)
    last_error: str | None = None
    last_attempt_at: datetime | None = None

    @property
    def local_id(self) -> str:
        return self.sale.local_id

    @property
    def sync_state(self) -> SyncState:
        return self.sale.sync_state
