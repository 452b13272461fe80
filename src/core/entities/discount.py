"""Discount specification entities."""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class DiscountKind(str, Enum):
    """How a discount value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed"


class DiscountSpec(BaseModel):
    """
    A requested discount.

    ``value`` is kept as entered; the calculator sanitizes and clamps it,
    so a spec never needs to be valid to be stored.
    """

    model_config = ConfigDict(frozen=True)

    kind: DiscountKind = DiscountKind.PERCENTAGE
    value: Any = Decimal("0")
    coupon_code: str | None = None

    @classmethod
    def none(cls) -> "DiscountSpec":
        return cls(kind=DiscountKind.PERCENTAGE, value=Decimal("0"))

    @classmethod
    def percentage(cls, value: Any, coupon_code: str | None = None) -> "DiscountSpec":
        return cls(kind=DiscountKind.PERCENTAGE, value=value, coupon_code=coupon_code)

    @classmethod
    def fixed(cls, value: Any, coupon_code: str | None = None) -> "DiscountSpec":
        return cls(kind=DiscountKind.FIXED_AMOUNT, value=value, coupon_code=coupon_code)
