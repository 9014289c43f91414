"""Payment-processor events consumed by the quota engine.

Signature checks and delivery retries belong to the webhook receiver; these
handlers take events that have already been verified and decoded.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel

from planquota.types import BillingCycle, SubscriptionStatus
from planquota.utils.dates import utc_now

if TYPE_CHECKING:
    from planquota.billing.transitions import PlanTransitionManager
    from planquota.models.quota import QuotaRecord
    from planquota.storage.repositories.quotas import QuotaRepository

logger = structlog.get_logger(__name__)

EVENT_CHECKOUT_COMPLETED = "checkout.completed"
EVENT_SUBSCRIPTION_CANCELED = "subscription.canceled"


class CheckoutCompleted(BaseModel):
    tenant_id: str
    plan_id: str
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    customer_id: str | None = None
    subscription_id: str | None = None
    price_id: str | None = None
    paid_at: datetime | None = None


class SubscriptionCanceled(BaseModel):
    tenant_id: str
    subscription_id: str | None = None
    reason: str | None = None


class BillingEventHandler:
    """Applies successful checkouts and cancellations to quota records."""

    def __init__(
        self,
        transitions: PlanTransitionManager,
        repository: QuotaRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._transitions = transitions
        self._repo = repository
        self._clock = clock
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[QuotaRecord | None]]] = {
            EVENT_CHECKOUT_COMPLETED: self._on_checkout,
            EVENT_SUBSCRIPTION_CANCELED: self._on_cancel,
        }

    async def dispatch(self, event_type: str, data: dict[str, Any]) -> QuotaRecord | None:
        """Route a decoded event. Unknown event types are ignored."""
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug("billing_event_unhandled", event_type=event_type)
            return None
        logger.info("billing_event_received", event_type=event_type)
        return await handler(data)

    async def _on_checkout(self, data: dict[str, Any]) -> QuotaRecord | None:
        return await self.handle_checkout_completed(CheckoutCompleted.model_validate(data))

    async def _on_cancel(self, data: dict[str, Any]) -> QuotaRecord | None:
        return await self.handle_subscription_canceled(SubscriptionCanceled.model_validate(data))

    async def handle_checkout_completed(self, event: CheckoutCompleted) -> QuotaRecord:
        """Switch the tenant to the purchased plan and store processor linkage.

        Plan and linkage are written in one patch, so a failed write leaves the
        record untouched and a redelivered event applies cleanly.
        """
        payment: dict[str, Any] = {"last_payment_date": event.paid_at or self._clock()}
        if event.customer_id:
            payment["stripe_customer_id"] = event.customer_id
        if event.subscription_id:
            payment["stripe_subscription_id"] = event.subscription_id
        if event.price_id:
            payment["stripe_price_id"] = event.price_id
        record = await self._transitions.change_plan(
            event.tenant_id,
            event.plan_id,
            event.billing_cycle,
            updated_by="payment_processor",
            payment=payment,
        )
        logger.info(
            "checkout_applied",
            tenant_id=event.tenant_id,
            plan=event.plan_id,
            billing_cycle=str(event.billing_cycle),
        )
        return record

    async def handle_subscription_canceled(self, event: SubscriptionCanceled) -> QuotaRecord | None:
        """Mark the tenant canceled. Limits stay in force until ``end_date``.

        A cancellation for a subscription other than the one on record is
        stale and ignored.
        """
        record = await self._repo.get(event.tenant_id)
        if (
            record is not None
            and event.subscription_id
            and record.stripe_subscription_id
            and event.subscription_id != record.stripe_subscription_id
        ):
            logger.warning(
                "billing_cancel_ignored_stale_subscription",
                tenant_id=event.tenant_id,
                subscription_id=event.subscription_id,
                current_subscription_id=record.stripe_subscription_id,
            )
            return None
        return await self._transitions.update_status(
            event.tenant_id,
            SubscriptionStatus.CANCELED,
            updated_by="payment_processor",
            notes=event.reason,
        )
