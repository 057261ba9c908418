"""PayPal order request schemas."""

from decimal import Decimal, InvalidOperation
from typing import Literal

from pydantic import Field, field_validator

from app.schemas.common import ApiModel


class OrderRequest(ApiModel):
    """Body of POST /paypal/order."""

    amount: str
    currency: str = Field(..., pattern="^[A-Za-z]{3}$")
    intent: Literal["CAPTURE", "AUTHORIZE"]

    @field_validator("amount", mode="before")
    @classmethod
    def _positive_amount(cls, value):
        try:
            amount = Decimal(str(value))
            if amount.is_finite() and amount > 0:
                return f"{amount.quantize(Decimal('0.01'))}"
        except InvalidOperation:
            raise ValueError("amount must be a number")
        raise ValueError("amount must be a positive number")

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("intent", mode="before")
    @classmethod
    def _upper_intent(cls, value):
        return value.upper() if isinstance(value, str) else value
