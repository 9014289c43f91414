"""Plan catalog API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from planquota.models.api import PatchPlanRequest
from planquota.services import Services
from planquota.types import BillingCycle
from planquota.web.dependencies import get_services

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.get("")
async def list_plans(services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    return [t.model_dump(mode="json") for t in await services.catalog.list_active_plans()]


@router.get("/{plan_id}")
async def get_plan(plan_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    template = await services.catalog.get_template(plan_id)
    return template.model_dump(mode="json")


@router.patch("/{plan_id}")
async def patch_plan(
    plan_id: str,
    body: PatchPlanRequest,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    template = await services.catalog.upsert_template(
        plan_id, body.fields, updated_by=body.updated_by
    )
    return template.model_dump(mode="json")


@router.get("/{plan_id}/checkout")
async def checkout_quote(
    plan_id: str,
    cycle: BillingCycle = BillingCycle.MONTHLY,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    quote = await services.catalog.quote_checkout(plan_id, cycle)
    return quote.model_dump(mode="json")
