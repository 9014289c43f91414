"""Per-tenant quota record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from planquota.billing.limits import Bounded, Limit, LimitField
from planquota.billing.plans import PlanFeatures
from planquota.types import BillingCycle, ResourceKind, SubscriptionStatus

# Resource kind -> (limit field, usage counter field)
RESOURCE_FIELDS: dict[ResourceKind, tuple[str, str]] = {
    ResourceKind.USERS: ("max_users", "current_users"),
    ResourceKind.DOCUMENTS: ("max_documents", "current_documents"),
    ResourceKind.LOGOS: ("max_logos", "current_logos"),
    ResourceKind.STORAGE: ("max_storage_mb", "current_storage_mb"),
    ResourceKind.CUSTOMERS: ("max_customers", "current_customers"),
    ResourceKind.CONTRACTORS: ("max_contractors", "current_contractors"),
    ResourceKind.PDF_EXPORTS: ("max_pdf_exports", "current_pdf_exports"),
    ResourceKind.COMPANIES: ("max_companies", "current_companies"),
}

# Counters zeroed by the periodic (monthly) reset
PERIODIC_COUNTERS: tuple[str, ...] = ("current_documents", "current_pdf_exports")


class QuotaRecord(BaseModel):
    """Durable per-tenant state: plan limits mirrored from a template plus live usage.

    Field defaults match the free plan so records written before a field
    existed still load.
    """

    tenant_id: str
    plan: str = "free"
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    billing_cycle: BillingCycle = BillingCycle.MONTHLY

    max_users: LimitField = Bounded(1)
    current_users: int = Field(default=0, ge=0)
    max_documents: LimitField = Bounded(15)
    current_documents: int = Field(default=0, ge=0)
    max_logos: LimitField = Bounded(1)
    current_logos: int = Field(default=0, ge=0)
    max_storage_mb: LimitField = Bounded(50)
    current_storage_mb: int = Field(default=0, ge=0)
    max_customers: LimitField = Bounded(10)
    current_customers: int = Field(default=0, ge=0)
    max_contractors: LimitField = Bounded(2)
    current_contractors: int = Field(default=0, ge=0)
    max_pdf_exports: LimitField = Bounded(20)
    current_pdf_exports: int = Field(default=0, ge=0)
    max_companies: LimitField = Bounded(1)
    current_companies: int = Field(default=0, ge=0)
    history_retention_days: LimitField = Bounded(7)
    allow_custom_logo: bool = False

    features: PlanFeatures = PlanFeatures()

    start_date: datetime | None = None
    end_date: datetime | None = None
    trial_end_date: datetime | None = None
    last_payment_date: datetime | None = None
    next_payment_date: datetime | None = None
    document_reset_date: datetime | None = None
    last_used_at: datetime | None = None

    payment_amount: int | None = None
    currency: str | None = None

    # Opaque payment-processor linkage; stored and forwarded, never interpreted
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    stripe_price_id: str | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None
    notes: str | None = None

    def limit_for(self, kind: ResourceKind) -> Limit:
        limit_field, _ = RESOURCE_FIELDS[kind]
        limit: Limit = getattr(self, limit_field)
        return limit

    def usage_for(self, kind: ResourceKind) -> int:
        _, counter_field = RESOURCE_FIELDS[kind]
        usage: int = getattr(self, counter_field)
        return usage
