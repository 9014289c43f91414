"""Quota engine: record creation, usage tracking and limit checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from planquota.billing.limits import is_exceeded
from planquota.exceptions import NotFoundError
from planquota.models.quota import PERIODIC_COUNTERS, RESOURCE_FIELDS
from planquota.quota.provisioning import build_quota_record
from planquota.types import BillingCycle, ResourceKind, SubscriptionStatus
from planquota.utils.dates import first_day_of_next_month, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from planquota.billing.catalog import PlanCatalog
    from planquota.models.quota import QuotaRecord
    from planquota.storage.repositories.quotas import QuotaRepository

logger = structlog.get_logger(__name__)


def _resource_kind(kind: ResourceKind | str) -> ResourceKind:
    try:
        return ResourceKind(kind)
    except ValueError:
        msg = f"Unknown resource kind: {kind!r}"
        raise ValueError(msg) from None


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        msg = f"Amount must be a positive integer, got {amount!r}"
        raise ValueError(msg)


class QuotaEngine:
    """Stateless operations over per-tenant quota records.

    ``increment``/``decrement`` are read-modify-write against the store, not
    compare-and-swap: concurrent callers on one tenant can under-count or
    briefly overshoot a limit. Limits are soft, for upgrade prompts rather than
    security. None of the mutations are idempotent; never blindly retry one.
    """

    def __init__(
        self,
        repository: QuotaRepository,
        catalog: PlanCatalog,
        default_plan: str = "free",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._catalog = catalog
        self._default_plan = default_plan
        self._clock = clock

    async def create_quota_record(
        self,
        tenant_id: str,
        plan_id: str | None = None,
        billing_cycle: BillingCycle = BillingCycle.MONTHLY,
    ) -> QuotaRecord:
        """Create (or overwrite) the tenant's record with zeroed usage."""
        plan_id = plan_id or self._default_plan
        template = await self._catalog.resolve(plan_id)
        record = build_quota_record(tenant_id, template, BillingCycle(billing_cycle), self._clock())
        await self._repo.save(record)
        logger.info(
            "quota_record_created",
            tenant_id=tenant_id,
            plan=plan_id,
            billing_cycle=str(record.billing_cycle),
        )
        return record

    async def get_record(self, tenant_id: str) -> QuotaRecord:
        record = await self._repo.get(tenant_id)
        if record is None:
            msg = f"No quota record for tenant {tenant_id}"
            raise NotFoundError(msg)
        return record

    async def check_exceeded(self, tenant_id: str, kind: ResourceKind | str) -> bool:
        """True once usage has reached the limit. Unlimited resources never exceed."""
        resource = _resource_kind(kind)
        record = await self.get_record(tenant_id)
        exceeded = is_exceeded(record.usage_for(resource), record.limit_for(resource))
        if exceeded:
            logger.info(
                "quota_limit_reached",
                tenant_id=tenant_id,
                resource=str(resource),
                current=record.usage_for(resource),
                limit=str(record.limit_for(resource)),
            )
        return exceeded

    async def increment(self, tenant_id: str, kind: ResourceKind | str, amount: int = 1) -> int:
        """Add ``amount`` to one usage counter and return the new value."""
        _check_amount(amount)
        return await self._adjust(tenant_id, _resource_kind(kind), amount)

    async def decrement(self, tenant_id: str, kind: ResourceKind | str, amount: int = 1) -> int:
        """Subtract ``amount`` from one usage counter, flooring at zero."""
        _check_amount(amount)
        return await self._adjust(tenant_id, _resource_kind(kind), -amount)

    async def _adjust(self, tenant_id: str, resource: ResourceKind, delta: int) -> int:
        record = await self.get_record(tenant_id)
        _, counter_field = RESOURCE_FIELDS[resource]
        previous = record.usage_for(resource)
        new_value = max(0, previous + delta)
        await self._repo.patch(tenant_id, {counter_field: new_value, "updated_at": self._clock()})
        logger.debug(
            "quota_usage_adjusted",
            tenant_id=tenant_id,
            resource=str(resource),
            previous=previous,
            current=new_value,
        )
        return new_value

    async def reset_periodic_counters(self, tenant_id: str) -> datetime:
        """Zero the monthly document and PDF-export counters.

        Called by the external scheduler only. Returns the next reset date.
        """
        await self.get_record(tenant_id)
        now = self._clock()
        next_reset = first_day_of_next_month(now)
        updates: dict[str, object] = {field: 0 for field in PERIODIC_COUNTERS}
        updates.update(document_reset_date=next_reset, updated_at=now)
        await self._repo.patch(tenant_id, updates)
        logger.info("quota_periodic_counters_reset", tenant_id=tenant_id, next_reset=next_reset)
        return next_reset

    async def touch_last_used(self, tenant_id: str) -> None:
        """Best effort: stamp ``last_used_at``. Failures are logged, never raised.

        This is not a quota mutation; quota writes always propagate errors.
        """
        try:
            if await self._repo.get(tenant_id) is None:
                logger.debug("quota_touch_skipped_missing_record", tenant_id=tenant_id)
                return
            await self._repo.patch(tenant_id, {"last_used_at": self._clock()})
        except Exception:
            logger.exception("quota_touch_last_used_failed", tenant_id=tenant_id)

    async def list_records(self) -> list[QuotaRecord]:
        return await self._repo.list_all()

    async def list_tenants_by_status(self, status: SubscriptionStatus | str) -> list[str]:
        records = await self._repo.list_by_status(SubscriptionStatus(status))
        return [record.tenant_id for record in records]

    async def list_due_for_reset(self, now: datetime | None = None) -> list[QuotaRecord]:
        """Records whose document reset date is at or before ``now``."""
        now = now or self._clock()
        return [
            record
            for record in await self._repo.list_all()
            if record.document_reset_date is not None and record.document_reset_date <= now
        ]
