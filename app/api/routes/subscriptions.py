"""Subscription and plan management routes."""

from fastapi import APIRouter

from app.api.deps import Subscriptions
from app.schemas.subscriptions import ActivatePlanRequest

router = APIRouter(tags=["subscriptions"])


@router.get("/subscriptions/plans")
async def list_plans(subscriptions: Subscriptions):
    return [plan.to_json() for plan in subscriptions.list_plans()]


@router.post("/subscriptions")
async def activate_plan(payload: ActivatePlanRequest, subscriptions: Subscriptions):
    """Switch a user to a plan. Paid plans need a completed PayPal order."""
    subscription = await subscriptions.activate_plan(payload)
    return subscription.to_json()


@router.post("/subscriptions/{user_id}/cancel")
async def cancel_subscription(user_id: str, subscriptions: Subscriptions):
    subscription = await subscriptions.cancel(user_id)
    return subscription.to_json()


@router.get("/subscriptions/{user_id}")
async def get_subscription(user_id: str, subscriptions: Subscriptions):
    """The user's latest subscription, or null."""
    subscription = await subscriptions.get_for_user(user_id)
    return subscription.to_json() if subscription is not None else None
