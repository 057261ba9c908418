"""Subscription and plan schemas."""

from typing import Optional

from pydantic import ConfigDict, Field

from app.models.enums import SubscriptionTier
from app.schemas.common import ApiModel


class Plan(ApiModel):
    """Subscription plan details."""

    id: SubscriptionTier
    name: str
    price_usd: int = Field(..., ge=0, alias="priceUSD")
    credits: int = Field(..., ge=0)
    description: str = Field(..., max_length=500)
    features: list[str]
    popular: bool = False


class ActivatePlanRequest(ApiModel):
    """Switch a user to a plan. Paid plans need the id of a captured PayPal order."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1)
    plan: SubscriptionTier
    order_id: Optional[str] = Field(None, pattern="^[A-Za-z0-9-]+$")
