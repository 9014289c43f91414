"""Building quota records from plan templates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from planquota.billing.plans import LIMIT_FIELDS, calculate_price
from planquota.models.quota import QuotaRecord
from planquota.types import SubscriptionStatus
from planquota.utils.dates import first_day_of_next_month

if TYPE_CHECKING:
    from datetime import datetime

    from planquota.billing.plans import PlanTemplate
    from planquota.types import BillingCycle

# Fields a quota record copies from its plan template
MIRRORED_FIELDS: tuple[str, ...] = (*LIMIT_FIELDS, "allow_custom_logo", "features")


def template_fields(template: PlanTemplate) -> dict[str, Any]:
    """Limit and feature values a quota record mirrors from its plan template."""
    fields: dict[str, Any] = {name: getattr(template, name) for name in LIMIT_FIELDS}
    fields["allow_custom_logo"] = template.allow_custom_logo
    fields["features"] = template.features
    return fields


def build_quota_record(
    tenant_id: str,
    template: PlanTemplate,
    billing_cycle: BillingCycle,
    now: datetime,
) -> QuotaRecord:
    """A fresh active record on ``template`` with every usage counter at zero."""
    record = QuotaRecord(
        tenant_id=tenant_id,
        plan=template.id,
        status=SubscriptionStatus.ACTIVE,
        billing_cycle=billing_cycle,
        start_date=now,
        document_reset_date=first_day_of_next_month(now),
        created_at=now,
        updated_at=now,
        **template_fields(template),
    )
    price = calculate_price(template, billing_cycle)
    if price > 0:
        record.payment_amount = price
        record.currency = template.currency
    return record
