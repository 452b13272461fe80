"""
Domain exceptions for the POS checkout engine.

Provides specific exception types for different error scenarios.
"""

from decimal import Decimal
from typing import Any


class POSError(Exception):
    """Base exception for all checkout engine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Checkout Exceptions
class CheckoutError(POSError):
    """Base exception for checkout validation and navigation."""

    pass


class EmptyCartError(CheckoutError):
    """Checkout started with no line items."""

    def __init__(self):
        super().__init__(
            "Cannot start checkout with an empty cart",
            code="EMPTY_CART",
        )


class StepNotReachableError(CheckoutError):
    """Navigation to a step that has not been visited yet."""

    def __init__(self, target: str, current: str):
        super().__init__(
            f"Cannot jump from '{current}' to unvisited step '{target}'",
            code="STEP_NOT_REACHABLE",
            details={"target": target, "current": current},
        )


class StepGuardError(CheckoutError):
    """The current step's data does not allow advancing."""

    def __init__(self, step: str, reason: str):
        super().__init__(
            f"Cannot advance past '{step}': {reason}",
            code="STEP_INCOMPLETE",
            details={"step": step, "reason": reason},
        )


class PaymentMethodRequiredError(CheckoutError):
    """No payment method selected for a single-tender checkout."""

    def __init__(self):
        super().__init__(
            "Please select a payment method",
            code="PAYMENT_METHOD_REQUIRED",
        )


class InsufficientFundsError(CheckoutError):
    """Tendered amount does not cover the amount due."""

    def __init__(self, tendered: Decimal, amount_due: Decimal):
        shortfall = amount_due - tendered
        super().__init__(
            f"Tendered {tendered} is less than amount due {amount_due}",
            code="INSUFFICIENT_FUNDS",
            details={
                "tendered": str(tendered),
                "amount_due": str(amount_due),
                "shortfall": str(shortfall),
            },
        )
        self.tendered = tendered
        self.amount_due = amount_due
        self.shortfall = shortfall


class SessionConsumedError(CheckoutError):
    """A completed or cancelled session was used again."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Checkout session already closed: {session_id}",
            code="SESSION_CONSUMED",
            details={"session_id": session_id},
        )


class InvalidStateTransitionError(POSError):
    """A sale was asked to leave a terminal sync state."""

    def __init__(self, local_id: str, current: str, target: str):
        super().__init__(
            f"Sale {local_id} cannot move from {current} to {target}",
            code="INVALID_STATE_TRANSITION",
            details={"local_id": local_id, "current": current, "target": target},
        )


# Remote Exceptions
class RemoteError(POSError):
    """Base exception for calls to the POS backend."""

    pass


class SaleEndpointUnreachableError(RemoteError):
    """The sale endpoint could not be reached (network error or timeout)."""

    def __init__(self, reason: str, timed_out: bool = False):
        super().__init__(
            f"Sale endpoint unreachable: {reason}",
            code="ENDPOINT_UNREACHABLE",
            details={"reason": reason, "timed_out": timed_out},
        )
        self.timed_out = timed_out


class SaleEndpointServerError(RemoteError):
    """The sale endpoint failed server-side (5xx, or an unusable acknowledgement)."""

    def __init__(self, status_code: int, body: str = "", reason: str | None = None):
        message = f"Sale endpoint returned HTTP {status_code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            code="ENDPOINT_SERVER_ERROR",
            details={"status_code": status_code, "body": body[:200]},
        )
        self.status_code = status_code


class SaleRejectedError(RemoteError):
    """The backend refused the sale (stock conflict, malformed payload, ...)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            f"Sale rejected: {message}",
            code="SALE_REJECTED",
            details={"status_code": status_code, "reason": message},
        )
        self.reason = message
        self.status_code = status_code


class CatalogUnavailableError(RemoteError):
    """Product catalog could not be fetched."""

    def __init__(self, reason: str):
        super().__init__(
            f"Product catalog unavailable: {reason}",
            code="CATALOG_UNAVAILABLE",
            details={"reason": reason},
        )


# Coupon Exceptions
class CouponError(POSError):
    """Base exception for coupon validation."""

    pass


class CouponNotFoundError(CouponError):
    """Coupon code does not exist."""

    def __init__(self, code: str):
        super().__init__(
            f"Coupon not found: {code}",
            code="COUPON_NOT_FOUND",
            details={"coupon_code": code},
        )


class CouponExpiredError(CouponError):
    """Coupon exists but can no longer be used."""

    def __init__(self, code: str):
        super().__init__(
            f"Coupon expired: {code}",
            code="COUPON_EXPIRED",
            details={"coupon_code": code},
        )


class CouponNotApplicableError(CouponError):
    """Coupon is valid but cannot be used for this cart."""

    def __init__(self, code: str, reason: str):
        super().__init__(
            f"Coupon {code} cannot be applied: {reason}",
            code="COUPON_NOT_APPLICABLE",
            details={"coupon_code": code, "reason": reason},
        )


class CouponServiceUnavailableError(CouponError):
    """Coupon validation service could not be reached."""

    def __init__(self, reason: str):
        super().__init__(
            f"Coupon service unavailable: {reason}",
            code="COUPON_SERVICE_UNAVAILABLE",
            details={"reason": reason},
        )


# Storage Exceptions
class StorageError(POSError):
    """Base exception for storage operations."""

    pass


class QueueEntryNotFoundError(StorageError):
    """Offline queue entry not found."""

    def __init__(self, local_id: str):
        super().__init__(
            f"Offline queue entry not found: {local_id}",
            code="QUEUE_ENTRY_NOT_FOUND",
            details={"local_id": local_id},
        )


class ProductNotCachedError(StorageError):
    """Product is not present in the offline catalog cache."""

    def __init__(self, product_id: int | str):
        super().__init__(
            f"Product not in offline cache: {product_id}",
            code="PRODUCT_NOT_CACHED",
            details={"product_id": product_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Configuration Exceptions
class ConfigurationError(POSError):
    """Invalid configuration."""

    def __init__(self, setting: str, message: str):
        super().__init__(
            f"Configuration error for '{setting}': {message}",
            code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )
