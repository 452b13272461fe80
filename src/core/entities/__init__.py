"""Core domain entities."""

from src.core.entities.cart import LineItem, Product, ProductStatus
from src.core.entities.checkout import STEP_ORDER, CheckoutSession, StepId
from src.core.entities.customer import CustomerInfo, StaffIdentity
from src.core.entities.discount import DiscountKind, DiscountSpec
from src.core.entities.payment import PaymentMethod, PaymentTender
from src.core.entities.sale import (
    OfflineQueueEntry,
    Sale,
    SyncState,
    is_local_id,
    new_local_id,
)

__all__ = [
    # Cart
    "Product",
    "ProductStatus",
    "LineItem",
    # Discount
    "DiscountKind",
    "DiscountSpec",
    # Payment
    "PaymentMethod",
    "PaymentTender",
    # Customer
    "CustomerInfo",
    "StaffIdentity",
    # Checkout
    "StepId",
    "STEP_ORDER",
    "CheckoutSession",
    # Sale
    "Sale",
    "SyncState",
    "OfflineQueueEntry",
    "new_local_id",
    "is_local_id",
]
