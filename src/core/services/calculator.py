"""
Money and discount calculator.

Pure functions over line items and discount specs. Inputs are sanitized
rather than rejected: anything that is not a finite, non-negative number
counts as zero, and every amount is rounded to cents.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from src.core.entities.cart import LineItem
from src.core.entities.discount import DiscountKind, DiscountSpec

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class Totals:
    """Priced view of a cart under a discount."""

    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal


def quantize(amount: Decimal) -> Decimal:
    """Round to two decimal places, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value: Any) -> Decimal:
    """
    Coerce an arbitrary value into a non-negative Decimal.

    Non-numeric, NaN, infinite and negative values become zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite() or amount < 0:
        return ZERO
    return amount


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(value, high))


def compute_subtotal(items: Iterable[LineItem]) -> Decimal:
    """Sum of unit price times quantity. Negative lines contribute nothing."""
    subtotal = ZERO
    for item in items:
        line = to_amount(item.unit_price) * max(item.quantity, 0)
        subtotal += line
    return quantize(subtotal)


def compute_discount(subtotal: Decimal, discount: DiscountSpec | None) -> Decimal:
    """
    Discount amount for a subtotal, always within [0, subtotal].

    Percentages are clamped to [0, 100]; fixed amounts to [0, subtotal].
    """
    subtotal = to_amount(subtotal)
    if discount is None:
        return ZERO

    value = to_amount(discount.value)
    if discount.kind == DiscountKind.PERCENTAGE:
        amount = subtotal * _clamp(value, ZERO, HUNDRED) / HUNDRED
    else:
        amount = _clamp(value, ZERO, subtotal)

    return quantize(_clamp(amount, ZERO, subtotal))


def compute_totals(items: Iterable[LineItem], discount: DiscountSpec | None) -> Totals:
    """Price a list of line items under a discount."""
    subtotal = compute_subtotal(items)
    discount_amount = compute_discount(subtotal, discount)
    total = max(subtotal - discount_amount, ZERO)
    return Totals(subtotal=subtotal, discount_amount=discount_amount, total=quantize(total))


def compute_change(amount_paid: Any, amount_due: Any) -> Decimal:
    """Change owed to the customer: max(0, paid - due)."""
    change = to_amount(amount_paid) - to_amount(amount_due)
    return quantize(max(change, ZERO))
