"""HTTP client for the backend's coupon validation endpoint."""

from decimal import Decimal
from typing import Any

import httpx

from src.config import get_logger, get_settings
from src.core.entities.discount import DiscountKind, DiscountSpec
from src.core.exceptions import (
    CouponExpiredError,
    CouponNotApplicableError,
    CouponNotFoundError,
    CouponServiceUnavailableError,
)
from src.core.interfaces.coupon_service import CouponValidation, ICouponService
from src.infrastructure.remote.base import BaseRemoteClient, error_message

logger = get_logger(__name__)

COUPON_KINDS = {
    "PERCENTAGE": DiscountKind.PERCENTAGE,
    "FIXED": DiscountKind.FIXED_AMOUNT,
    "FIXED_AMOUNT": DiscountKind.FIXED_AMOUNT,
}


class CouponsApiClient(BaseRemoteClient, ICouponService):
    """Validates coupon codes against ``REMOTE_COUPON_PATH``."""

    def __init__(self, path: str | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.path = path or get_settings().remote.coupon_path

    async def validate(self, code: str, total_amount: Decimal) -> CouponValidation:
        try:
            response = await self._request(
                "POST",
                self.path,
                json={"code": code, "totalAmount": float(total_amount)},
            )
        except httpx.RequestError as e:
            raise CouponServiceUnavailableError(str(e) or type(e).__name__) from e

        if response.status_code >= 500:
            raise CouponServiceUnavailableError(f"HTTP {response.status_code}")
        if response.status_code == 404:
            raise CouponNotFoundError(code)
        if response.status_code >= 400:
            message = error_message(response, f"HTTP {response.status_code}")
            lowered = message.lower()
            if "invalid" in lowered or "not found" in lowered:
                raise CouponNotFoundError(code)
            if "expired" in lowered or "not active" in lowered:
                raise CouponExpiredError(code)
            raise CouponNotApplicableError(code, message)

        try:
            body = response.json()
            coupon = body["coupon"]
            kind = COUPON_KINDS[str(coupon["type"]).upper()]
            value = Decimal(str(coupon["value"]))
            discount_amount = Decimal(str(body.get("discountAmount", 0)))
        except (ValueError, KeyError, TypeError, ArithmeticError) as e:
            raise CouponServiceUnavailableError(f"unexpected response: {e}") from e

        logger.info("coupon_validated", code=code, kind=kind.value, discount=str(discount_amount))
        return CouponValidation(
            code=coupon.get("code", code),
            discount=DiscountSpec(kind=kind, value=value, coupon_code=coupon.get("code", code)),
            discount_amount=discount_amount,
        )
