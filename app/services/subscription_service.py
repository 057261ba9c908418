"""Service layer for subscription business logic.

Key Concepts:
- Plan: one entry of the fixed catalogue (Free, Pro, Enterprise)
- Subscription: a user's current plan, stored one row per activation
- Paid activations are backed by a PayPal order captured by the client. The
  order is looked up with the provider before anything is written, and an
  order id can pay for one activation only.
- Expiry is evaluated lazily: reading a subscription past ``expires_at``
  marks it expired and drops the user back to the free tier.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from app.database.storage import Storage, utcnow
from app.models.enums import SubscriptionStatus, SubscriptionTier
from app.schemas.records import Subscription, SubscriptionCreate, SubscriptionPatch, UserPatch
from app.schemas.subscriptions import ActivatePlanRequest, Plan
from app.services.paypal_service import PayPalService
from app.utils.exceptions import ConflictError, NotFoundError, PaymentError, ValidationError
from app.utils.locks import KeyedLock

logger = logging.getLogger(__name__)

BILLING_PERIOD = timedelta(days=30)
PLAN_CURRENCY = "USD"

PLANS: dict[SubscriptionTier, Plan] = {
    SubscriptionTier.FREE: Plan(
        id=SubscriptionTier.FREE,
        name="Free",
        price_usd=0,
        credits=100,
        description="Try AppForge with a handful of generations",
        features=["100 credits", "Basic templates", "Community support"],
    ),
    SubscriptionTier.PRO: Plan(
        id=SubscriptionTier.PRO,
        name="Pro",
        price_usd=29,
        credits=3000,
        description="For makers shipping apps every month",
        features=["3,000 credits per month", "All templates", "Source download", "Priority support"],
        popular=True,
    ),
    SubscriptionTier.ENTERPRISE: Plan(
        id=SubscriptionTier.ENTERPRISE,
        name="Enterprise",
        price_usd=99,
        credits=12000,
        description="For teams generating at scale",
        features=["12,000 credits per month", "All templates", "Source download", "Dedicated support"],
    ),
}


def _aware(value: datetime) -> datetime:
    # sqlite hands back naive timestamps; they are stored as UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _order_amount(order: Any) -> tuple[Optional[str], Optional[Decimal]]:
    """Currency code and value of the order's first purchase unit."""
    try:
        amount = order["purchase_units"][0]["amount"]
        return amount.get("currency_code"), Decimal(str(amount["value"]))
    except (KeyError, IndexError, TypeError, AttributeError, InvalidOperation):
        return None, None


def _lapsed(subscription: Subscription) -> bool:
    return (
        subscription.status == SubscriptionStatus.ACTIVE
        and subscription.expires_at is not None
        and _aware(subscription.expires_at) <= utcnow()
    )


class SubscriptionService:
    """Service for plan catalogue, activation and cancellation."""

    def __init__(self, storage: Storage, payments: PayPalService, user_locks: Optional[KeyedLock] = None):
        self._storage = storage
        self._payments = payments
        self._user_locks = user_locks or KeyedLock()

    @staticmethod
    def list_plans() -> list[Plan]:
        return list(PLANS.values())

    async def get_for_user(self, user_id: str) -> Optional[Subscription]:
        """Latest subscription of the user, or None if they never had one."""
        subscriptions = await self._storage.subscriptions.list_by("user_id", user_id)
        if not subscriptions:
            return None
        latest = subscriptions[-1]
        if _lapsed(latest):
            latest = await self._expire(latest)
        return latest

    async def _expire(self, subscription: Subscription) -> Subscription:
        async with self._user_locks.hold(subscription.user_id):
            # An activation or cancel may have run while we waited for the lock
            subscriptions = await self._storage.subscriptions.list_by("user_id", subscription.user_id)
            latest = subscriptions[-1] if subscriptions else subscription
            if latest.id != subscription.id or not _lapsed(latest):
                return latest

            expired = await self._storage.subscriptions.update(
                latest.id, SubscriptionPatch(status=SubscriptionStatus.EXPIRED)
            )
            await self._storage.users.update(latest.user_id, UserPatch(subscription=SubscriptionTier.FREE))
        logger.info("Subscription %s of user %s expired", latest.id, latest.user_id)
        return expired or latest

    async def _verify_payment(self, plan: Plan, order_id: Optional[str]) -> None:
        if not order_id:
            raise ValidationError("A completed PayPal order is required for paid plans", details={"field": "orderId"})

        if await self._storage.subscriptions.get_by("paypal_subscription_id", order_id) is not None:
            raise ConflictError("This order has already been used", details={"orderId": order_id})

        result = await self._payments.get_order(order_id)
        if result.status_code != 200 or not isinstance(result.body, dict):
            raise PaymentError("Could not verify the PayPal order", status_code=502, details=result.body)

        status = result.body.get("status")
        if status != "COMPLETED":
            raise PaymentError(
                "Payment has not been completed", status_code=402, details={"orderId": order_id, "status": status}
            )

        currency, amount = _order_amount(result.body)
        if currency != PLAN_CURRENCY:
            raise PaymentError(
                f"Payment must be made in {PLAN_CURRENCY}",
                status_code=402,
                details={"orderId": order_id, "currency": currency},
            )
        if amount is None or amount < plan.price_usd:
            raise PaymentError(
                "Payment amount does not cover the plan price",
                status_code=402,
                details={"orderId": order_id, "required": plan.price_usd},
            )

    async def activate_plan(self, payload: ActivatePlanRequest) -> Subscription:
        """Switch the user to ``payload.plan``.

        Paid plans add their credits to the user's balance and run for one
        billing period; the free plan only resets the tier.

        Raises:
            NotFoundError: Unknown user
            ValidationError: Paid plan without an order id
            ConflictError: The order already paid for another activation
            PaymentError: The order is not completed (402) or could not be read (502)
        """
        plan = PLANS[SubscriptionTier(payload.plan)]
        paid = plan.price_usd > 0

        async with self._user_locks.hold(payload.user_id):
            user = await self._storage.users.get(payload.user_id)
            if user is None:
                raise NotFoundError("User not found")

            if paid:
                await self._verify_payment(plan, payload.order_id)

            expires_at = utcnow() + BILLING_PERIOD if paid else None
            order_id = payload.order_id if paid else None
            # Superseded rows keep their order id so it cannot be replayed
            for previous in await self._storage.subscriptions.list_by("user_id", user.id):
                if previous.status == SubscriptionStatus.ACTIVE:
                    await self._storage.subscriptions.update(
                        previous.id, SubscriptionPatch(status=SubscriptionStatus.EXPIRED)
                    )

            subscription = await self._storage.subscriptions.create(
                SubscriptionCreate(
                    user_id=user.id,
                    plan=plan.id,
                    status=SubscriptionStatus.ACTIVE,
                    credits_remaining=plan.credits,
                    paypal_subscription_id=order_id,
                    expires_at=expires_at,
                )
            )

            credits = user.credits + plan.credits if paid else user.credits
            await self._storage.users.update(user.id, UserPatch(credits=credits, subscription=plan.id))

        logger.info("User %s activated plan %s (order %s)", user.id, plan.id, order_id)
        return subscription

    async def cancel(self, user_id: str) -> Subscription:
        async with self._user_locks.hold(user_id):
            subscriptions = await self._storage.subscriptions.list_by("user_id", user_id)
            active = next(
                (s for s in reversed(subscriptions) if s.status == SubscriptionStatus.ACTIVE),
                None,
            )
            if active is None:
                raise NotFoundError("No active subscription")

            cancelled = await self._storage.subscriptions.update(
                active.id, SubscriptionPatch(status=SubscriptionStatus.CANCELLED)
            )
            await self._storage.users.update(user_id, UserPatch(subscription=SubscriptionTier.FREE))

        logger.info("Subscription %s of user %s cancelled", active.id, user_id)
        return cancelled
