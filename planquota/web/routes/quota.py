"""Per-tenant quota, plan and entitlement API routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query

from planquota.models.api import (
    AdjustUsageRequest,
    ChangePlanRequest,
    CreateQuotaRequest,
    UpdateStatusRequest,
)
from planquota.services import Services
from planquota.web.dependencies import bind_tenant_context, get_services

router = APIRouter(
    prefix="/api/tenants/{tenant_id}",
    tags=["quota"],
    dependencies=[Depends(bind_tenant_context)],
)


@router.post("/quota", status_code=201)
async def create_quota(
    tenant_id: str,
    body: CreateQuotaRequest | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    body = body or CreateQuotaRequest()
    record = await services.engine.create_quota_record(
        tenant_id, body.plan_id, body.billing_cycle
    )
    return record.model_dump(mode="json")


@router.get("/quota")
async def get_quota(tenant_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    record = await services.engine.get_record(tenant_id)
    return record.model_dump(mode="json")


@router.get("/quota/{kind}/exceeded")
async def quota_exceeded(
    tenant_id: str, kind: str, services: Services = Depends(get_services)
) -> dict[str, Any]:
    exceeded = await services.engine.check_exceeded(tenant_id, kind)
    return {"tenant_id": tenant_id, "resource": kind, "exceeded": exceeded}


@router.post("/quota/{kind}/increment")
async def increment_usage(
    tenant_id: str,
    kind: str,
    body: AdjustUsageRequest | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    amount = body.amount if body else 1
    current = await services.engine.increment(tenant_id, kind, amount)
    await services.engine.touch_last_used(tenant_id)
    return {"tenant_id": tenant_id, "resource": kind, "current": current}


@router.post("/quota/{kind}/decrement")
async def decrement_usage(
    tenant_id: str,
    kind: str,
    body: AdjustUsageRequest | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    amount = body.amount if body else 1
    current = await services.engine.decrement(tenant_id, kind, amount)
    return {"tenant_id": tenant_id, "resource": kind, "current": current}


@router.post("/quota/reset")
async def reset_counters(
    tenant_id: str, services: Services = Depends(get_services)
) -> dict[str, Any]:
    next_reset = await services.engine.reset_periodic_counters(tenant_id)
    return {"tenant_id": tenant_id, "next_reset": next_reset.isoformat()}


@router.put("/plan")
async def change_plan(
    tenant_id: str,
    body: ChangePlanRequest,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    record = await services.transitions.change_plan(
        tenant_id, body.plan_id, body.billing_cycle, updated_by=body.updated_by
    )
    return record.model_dump(mode="json")


@router.put("/status")
async def update_status(
    tenant_id: str,
    body: UpdateStatusRequest,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    record = await services.transitions.update_status(
        tenant_id,
        body.status,
        updated_by=body.updated_by,
        notes=body.notes,
        trial_end_date=body.trial_end_date,
    )
    return record.model_dump(mode="json")


@router.get("/documents/{document_type}/access")
async def document_access(
    tenant_id: str, document_type: str, services: Services = Depends(get_services)
) -> dict[str, Any]:
    allowed = await services.gate.document_access_allows(tenant_id, document_type)
    return {"tenant_id": tenant_id, "document_type": document_type, "allowed": allowed}


@router.get("/pdf-export")
async def pdf_export(tenant_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    return asdict(await services.gate.can_export_pdf(tenant_id))


@router.get("/features/{feature}")
async def feature_enabled(
    tenant_id: str, feature: str, services: Services = Depends(get_services)
) -> dict[str, Any]:
    enabled = await services.gate.has_feature(tenant_id, feature)
    return {"tenant_id": tenant_id, "feature": feature, "enabled": enabled}


@router.get("/companies/allowance")
async def company_allowance(
    tenant_id: str,
    owned: int = Query(ge=0),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return asdict(await services.gate.can_create_company(tenant_id, owned))


@router.get("/usage")
async def usage(tenant_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    summary = await services.gate.usage_summary(tenant_id)
    return {kind: asdict(item) for kind, item in summary.items()}
