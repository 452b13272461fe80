"""Abstract interface for coupon validation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from src.core.entities.discount import DiscountSpec


@dataclass(frozen=True)
class CouponValidation:
    """A coupon accepted by the backend for a given cart total."""

    code: str
    discount: DiscountSpec
    discount_amount: Decimal


class ICouponService(ABC):
    """Interface for the coupon/discount validation service."""

    @abstractmethod
    async def validate(self, code: str, total_amount: Decimal) -> CouponValidation:
        """
        Validate a coupon code against a cart total.

        Raises:
            CouponNotFoundError: unknown code
            CouponExpiredError: code no longer valid
            CouponServiceUnavailableError: service could not be reached
        """
        pass
