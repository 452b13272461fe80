"""Checkout session entities."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from src.core.entities.customer import CustomerInfo
from src.core.entities.discount import DiscountSpec
from src.core.entities.payment import PaymentMethod, PaymentTender


class StepId(str, Enum):
    """Checkout wizard steps, in the order they are walked."""

    ORDER_SUMMARY = "order-summary"
    DISCOUNT = "discount"
    PAYMENT_METHOD = "payment-method"
    CUSTOMER_INFO = "customer-info"
    REVIEW = "review"

    @property
    def position(self) -> int:
        return STEP_ORDER.index(self)


STEP_ORDER: list[StepId] = [
    StepId.ORDER_SUMMARY,
    StepId.DISCOUNT,
    StepId.PAYMENT_METHOD,
    StepId.CUSTOMER_INFO,
    StepId.REVIEW,
]


class CheckoutSession(BaseModel):
    """
    Step-scoped form state for one in-progress checkout.

    The cart itself lives in the cart store; the session only holds what
    the wizard collects on top of it.
    """

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    discount: DiscountSpec = Field(default_factory=DiscountSpec.none)

    # Payment
    split_mode: bool = False
    payment_method: PaymentMethod | None = None
    amount_paid: Decimal | None = None
    tenders: list[PaymentTender] = Field(default_factory=list)
    priced_total: Decimal | None = None  # total used to pre-fill amount_paid

    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    notes: str | None = None

    current_step: StepId = StepId.ORDER_SUMMARY
    visited_steps: set[StepId] = Field(default_factory=lambda: {StepId.ORDER_SUMMARY})
    confirmed: bool = False
    consumed: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def tendered_total(self) -> Decimal:
        return sum((t.amount for t in self.tenders), Decimal("0"))

    def reset_payment(self) -> None:
        """Drop every payment choice made so far."""
        self.payment_method = None
        self.amount_paid = None
        self.tenders = []
        self.priced_total = None
