"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.calculator import (
    Totals,
    compute_change,
    compute_discount,
    compute_subtotal,
    compute_totals,
)
from src.core.services.cart_store import CartSnapshot, CartStore
from src.core.services.checkout_wizard import (
    CheckoutWizard,
    ConfirmResult,
    ConfirmStatus,
    can_advance,
)
from src.core.services.failure_classifier import (
    DefaultFailureClassifier,
    FailureClassifier,
    FailureKind,
)
from src.core.services.offline_queue import (
    DrainReport,
    DrainStatus,
    OfflineQueue,
    QueueStats,
)
from src.core.services.optimistic import OptimisticUpdate, UpdatePhase
from src.core.services.product_cache import ProductCache
from src.core.services.queue_log import AttemptKind, CorruptEntryError, QueueLog
from src.core.services.sale_submitter import (
    DispatchOutcome,
    DispatchResult,
    SaleDispatcher,
    SaleSubmitter,
)
from src.core.services.split_payment import (
    Reconciliation,
    ReconciliationStatus,
    SplitPaymentReconciler,
)

__all__ = [
    # Calculator
    "Totals",
    "compute_totals",
    "compute_subtotal",
    "compute_discount",
    "compute_change",
    # Cart
    "CartStore",
    "CartSnapshot",
    # Checkout
    "CheckoutWizard",
    "ConfirmResult",
    "ConfirmStatus",
    "can_advance",
    "OptimisticUpdate",
    "UpdatePhase",
    # Payment
    "SplitPaymentReconciler",
    "Reconciliation",
    "ReconciliationStatus",
    # Submission
    "SaleDispatcher",
    "SaleSubmitter",
    "DispatchOutcome",
    "DispatchResult",
    "FailureClassifier",
    "DefaultFailureClassifier",
    "FailureKind",
    # Offline queue
    "OfflineQueue",
    "QueueLog",
    "AttemptKind",
    "CorruptEntryError",
    "DrainReport",
    "DrainStatus",
    "QueueStats",
    # Product cache
    "ProductCache",
]
