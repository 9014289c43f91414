"""Plan changes and subscription status updates for a tenant."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from planquota.billing.limits import is_exceeded
from planquota.billing.plans import calculate_price
from planquota.exceptions import InvalidStateError, NotFoundError
from planquota.models.quota import RESOURCE_FIELDS
from planquota.quota.provisioning import template_fields
from planquota.types import BillingCycle, SubscriptionStatus
from planquota.utils.dates import add_months, add_years, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from planquota.billing.catalog import PlanCatalog
    from planquota.models.quota import QuotaRecord
    from planquota.storage.repositories.quotas import QuotaRepository

logger = structlog.get_logger(__name__)


class PlanTransitionManager:
    """Moves a tenant between plans and persists externally-decided status changes."""

    def __init__(
        self,
        repository: QuotaRepository,
        catalog: PlanCatalog,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._catalog = catalog
        self._clock = clock

    async def _load(self, tenant_id: str) -> QuotaRecord:
        record = await self._repo.get(tenant_id)
        if record is None:
            msg = f"No quota record for tenant {tenant_id}"
            raise NotFoundError(msg)
        return record

    async def change_plan(
        self,
        tenant_id: str,
        new_plan_id: str,
        billing_cycle: BillingCycle = BillingCycle.MONTHLY,
        updated_by: str | None = None,
        payment: Mapping[str, Any] | None = None,
    ) -> QuotaRecord:
        """Re-resolve limits and features from ``new_plan_id``.

        Usage counters carry over unchanged, so a downgrade can leave the
        tenant over its new limits until usage drops or the monthly reset.

        ``payment`` holds processor linkage (customer, subscription and price
        ids, ``last_payment_date``) written in the same patch as the plan, with
        ``next_payment_date`` set to the new ``end_date``.
        """
        record = await self._load(tenant_id)
        try:
            template = await self._catalog.resolve(new_plan_id)
        except NotFoundError as exc:
            msg = f"Cannot change tenant {tenant_id} to unknown plan {new_plan_id}"
            raise InvalidStateError(msg) from exc

        cycle = BillingCycle(billing_cycle)
        now = self._clock()
        updates: dict[str, Any] = {
            "plan": template.id,
            "status": SubscriptionStatus.ACTIVE,
            "billing_cycle": cycle,
            **template_fields(template),
            "start_date": now,
            "updated_at": now,
            "updated_by": updated_by,
        }

        price = calculate_price(template, cycle)
        if price > 0:
            updates["payment_amount"] = price
            updates["currency"] = template.currency
            updates["end_date"] = (
                add_years(now, 1) if cycle == BillingCycle.YEARLY else add_months(now, 1)
            )
        else:
            # Free plans carry no payment; contact-sales (-1) is never forwarded
            updates["payment_amount"] = None
            updates["currency"] = None
            updates["end_date"] = None

        if payment is not None:
            updates.update(payment)
            updates["next_payment_date"] = updates["end_date"]

        await self._repo.patch(tenant_id, updates)
        changed = record.model_copy(update=updates)

        over_limit = [
            str(kind)
            for kind in RESOURCE_FIELDS
            if is_exceeded(changed.usage_for(kind), changed.limit_for(kind))
        ]
        logger.info(
            "plan_changed",
            tenant_id=tenant_id,
            from_plan=record.plan,
            to_plan=template.id,
            billing_cycle=str(cycle),
            payment_amount=updates["payment_amount"],
            updated_by=updated_by,
        )
        if over_limit:
            logger.warning(
                "plan_change_left_tenant_at_limit", tenant_id=tenant_id, resources=over_limit
            )
        return changed

    async def update_status(
        self,
        tenant_id: str,
        status: SubscriptionStatus | str,
        updated_by: str | None = None,
        notes: str | None = None,
        trial_end_date: datetime | None = None,
    ) -> QuotaRecord:
        """Persist a status decided by billing. Limits and dates stay as they are."""
        record = await self._load(tenant_id)
        new_status = SubscriptionStatus(status)
        updates: dict[str, Any] = {
            "status": new_status,
            "updated_at": self._clock(),
            "updated_by": updated_by,
        }
        if notes is not None:
            updates["notes"] = notes
        if trial_end_date is not None:
            updates["trial_end_date"] = trial_end_date
        await self._repo.patch(tenant_id, updates)
        logger.info(
            "quota_status_updated",
            tenant_id=tenant_id,
            from_status=str(record.status),
            to_status=str(new_status),
            updated_by=updated_by,
        )
        return record.model_copy(update=updates)
