"""Payment tender entities."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PaymentMethod(str, Enum):
    """Supported payment instruments (values match the backend wire format)."""

    CASH = "cash"
    CARD_TERMINAL = "pos"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"


class PaymentTender(BaseModel):
    """One payment instrument and the amount applied toward a sale."""

    model_config = ConfigDict(frozen=True)

    method: PaymentMethod
    amount: Decimal = Field(gt=0)
