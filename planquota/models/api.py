"""Request bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from planquota.types import BillingCycle, SubscriptionStatus


class CreateQuotaRequest(BaseModel):
    plan_id: str | None = None
    billing_cycle: BillingCycle = BillingCycle.MONTHLY


class AdjustUsageRequest(BaseModel):
    amount: int = Field(default=1, ge=1)


class ChangePlanRequest(BaseModel):
    plan_id: str = Field(min_length=1)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    updated_by: str | None = None


class UpdateStatusRequest(BaseModel):
    status: SubscriptionStatus
    updated_by: str | None = None
    notes: str | None = None
    trial_end_date: datetime | None = None


class PatchPlanRequest(BaseModel):
    """Merge patch for a plan template; ``fields`` holds wire-form values."""

    fields: dict[str, Any] = Field(min_length=1)
    updated_by: str | None = None
