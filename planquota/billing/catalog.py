"""Plan catalog: store overrides layered over the built-in default table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError

from planquota.billing.plans import (
    CATALOG_VERSION,
    CONTACT_SALES_PRICE,
    DEFAULT_PLAN_TEMPLATES,
    FREE_PRICE,
    PlanTemplate,
    calculate_price,
)
from planquota.exceptions import InvalidStateError, NotFoundError, TransientStoreError
from planquota.types import BillingCycle
from planquota.utils.dates import utc_now

if TYPE_CHECKING:
    from collections.abc import Mapping

    from planquota.storage.repositories.plan_templates import PlanTemplateRepository

logger = structlog.get_logger(__name__)

# Fields a patch may not touch
_PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "updated_by"})

# Store-side values a catalog re-sync must not clobber
_SYNC_PRESERVED_FIELDS = {
    "created_at",
    "stripe_product_id",
    "stripe_price_monthly_id",
    "stripe_price_yearly_id",
}


class CheckoutQuote(BaseModel):
    """What the payment processor should charge for a plan and cycle."""

    plan_id: str
    billing_cycle: BillingCycle
    amount: int
    currency: str
    price_id: str | None = None


def _merge_patch(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for field, value in patch.items():
        if field == "features" and isinstance(value, dict):
            merged["features"] = {**(base.get("features") or {}), **value}
        else:
            merged[field] = value
    return merged


class PlanCatalog:
    """Resolves plan ids to templates.

    Resolution order is store record, then built-in default, then
    ``NotFoundError``. Reads never write; call ``bootstrap()`` once at start-up
    to seed the store.
    """

    def __init__(
        self,
        repository: PlanTemplateRepository,
        defaults: Mapping[str, PlanTemplate] = DEFAULT_PLAN_TEMPLATES,
        catalog_version: str = CATALOG_VERSION,
    ) -> None:
        self._repo = repository
        self._defaults = defaults
        self.catalog_version = catalog_version

    async def bootstrap(self) -> list[str]:
        """Persist every built-in template the store lacks. Existing ones are kept."""
        created: list[str] = []
        now = utc_now()
        for plan_id, template in self._defaults.items():
            if await self._repo.get_raw(plan_id) is not None:
                logger.debug("plan_template_bootstrap_skipped", plan_id=plan_id)
                continue
            stamped = template.model_copy(update={"created_at": now, "updated_at": now})
            await self._repo.save(stamped)
            created.append(plan_id)
        logger.info(
            "plan_catalog_bootstrapped",
            created=created,
            catalog_version=self.catalog_version,
        )
        return created

    async def force_sync(self, updated_by: str | None = None) -> list[str]:
        """Merge every built-in template over its stored copy (pricing migrations)."""
        now = utc_now()
        for template in self._defaults.values():
            await self._repo.save(
                template.model_copy(update={"updated_at": now, "updated_by": updated_by}),
                merge=True,
                exclude=_SYNC_PRESERVED_FIELDS,
            )
        logger.info(
            "plan_catalog_force_synced",
            plan_ids=list(self._defaults),
            catalog_version=self.catalog_version,
        )
        return list(self._defaults)

    async def get_template(self, plan_id: str) -> PlanTemplate:
        stored = await self._repo.get(plan_id)
        if stored is not None:
            return stored
        default = self._defaults.get(plan_id)
        if default is not None:
            return default
        msg = f"Unknown plan: {plan_id}"
        raise NotFoundError(msg)

    async def resolve(self, plan_id: str) -> PlanTemplate:
        """Like get_template, but a failing store falls back to the built-in default.

        Used wherever a record must be produced for a known plan even while
        the catalog store is unavailable or holds a corrupt override.
        """
        try:
            return await self.get_template(plan_id)
        except (TransientStoreError, ValidationError) as exc:
            default = self._defaults.get(plan_id)
            if default is None:
                msg = f"Unknown plan: {plan_id}"
                raise NotFoundError(msg) from exc
            logger.warning("plan_template_fallback_to_default", plan_id=plan_id, error=str(exc))
            return default

    async def list_templates(self) -> list[PlanTemplate]:
        by_id = {plan_id: template for plan_id, template in self._defaults.items()}
        for template in await self._repo.list_all():
            by_id[template.id] = template
        return sorted(by_id.values(), key=lambda t: t.display_order)

    async def list_active_templates(self) -> list[PlanTemplate]:
        return [t for t in await self.list_templates() if t.is_active]

    async def list_active_plans(self) -> list[PlanTemplate]:
        """Plans offered for purchase, in display order."""
        return await self.list_active_templates()

    async def upsert_template(
        self, plan_id: str, patch: dict[str, Any], updated_by: str | None = None
    ) -> PlanTemplate:
        """Merge-patch a template. Omitted fields keep their current value."""
        unknown = set(patch) - set(PlanTemplate.model_fields)
        if unknown:
            msg = f"Unknown plan template fields: {sorted(unknown)}"
            raise InvalidStateError(msg)
        protected = set(patch) & _PROTECTED_FIELDS
        if protected:
            msg = f"Plan template fields cannot be patched: {sorted(protected)}"
            raise InvalidStateError(msg)

        base = await self._repo.get_raw(plan_id)
        if base is None:
            default = self._defaults.get(plan_id)
            base = default.model_dump(mode="json") if default is not None else {}

        now = utc_now()
        merged = _merge_patch(base, patch)
        merged.update(id=plan_id, updated_at=now, updated_by=updated_by)
        if not merged.get("created_at"):
            merged["created_at"] = now
        try:
            template = PlanTemplate.model_validate(merged)
        except ValidationError as exc:
            msg = f"Invalid plan template {plan_id}: {exc.error_count()} error(s)"
            raise InvalidStateError(msg) from exc

        await self._repo.save(template)
        logger.info(
            "plan_template_upserted",
            plan_id=plan_id,
            fields=sorted(patch),
            updated_by=updated_by,
        )
        return template

    async def set_payment_ids(
        self,
        plan_id: str,
        product_id: str,
        monthly_price_id: str | None = None,
        yearly_price_id: str | None = None,
        updated_by: str | None = None,
    ) -> PlanTemplate:
        patch: dict[str, Any] = {"stripe_product_id": product_id}
        if monthly_price_id:
            patch["stripe_price_monthly_id"] = monthly_price_id
        if yearly_price_id:
            patch["stripe_price_yearly_id"] = yearly_price_id
        return await self.upsert_template(plan_id, patch, updated_by=updated_by)

    async def delete_template(self, plan_id: str) -> bool:
        """Drop the store override. A built-in plan resurfaces from the defaults."""
        return await self._repo.delete(plan_id)

    async def quote_checkout(self, plan_id: str, billing_cycle: BillingCycle) -> CheckoutQuote:
        """Price to hand to the payment processor; refuses free and contact-sales plans."""
        template = await self.get_template(plan_id)
        amount = calculate_price(template, billing_cycle)
        if amount == FREE_PRICE:
            msg = f"Plan {plan_id} is free and has no checkout"
            raise InvalidStateError(msg)
        if amount == CONTACT_SALES_PRICE:
            msg = f"Plan {plan_id} is not self-service; contact sales"
            raise InvalidStateError(msg)
        return CheckoutQuote(
            plan_id=plan_id,
            billing_cycle=billing_cycle,
            amount=amount,
            currency=template.currency,
            price_id=template.price_id_for(billing_cycle),
        )
