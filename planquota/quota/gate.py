"""Read-only entitlement queries over a tenant's current quota record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from planquota.billing.limits import UNLIMITED_SENTINEL, is_exceeded, limit_to_wire, remaining
from planquota.billing.plans import BOOLEAN_FEATURES
from planquota.models.quota import RESOURCE_FIELDS
from planquota.types import BASIC_DOCUMENT_TYPES, DocumentAccessLevel

if TYPE_CHECKING:
    from planquota.quota.engine import QuotaEngine


@dataclass(frozen=True, slots=True)
class PdfExportAllowance:
    allowed: bool
    remaining: int  # -1 when unlimited


@dataclass(frozen=True, slots=True)
class CompanyAllowance:
    allowed: bool
    current: int
    maximum: int  # -1 when unlimited
    plan: str
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class ResourceUsage:
    current: int
    limit: int  # -1 when unlimited
    remaining: int  # -1 when unlimited
    exceeded: bool


def access_allows(level: DocumentAccessLevel | str, document_type: str) -> bool:
    """Full access allows every document type; basic only the fixed allow-list."""
    if DocumentAccessLevel(level) == DocumentAccessLevel.FULL:
        return True
    return document_type in BASIC_DOCUMENT_TYPES


class FeatureGate:
    """Derived entitlement checks. Never writes."""

    def __init__(self, engine: QuotaEngine) -> None:
        self._engine = engine

    async def document_access_allows(self, tenant_id: str, document_type: str) -> bool:
        record = await self._engine.get_record(tenant_id)
        return access_allows(record.features.document_access, document_type)

    async def can_export_pdf(self, tenant_id: str) -> PdfExportAllowance:
        record = await self._engine.get_record(tenant_id)
        left = remaining(record.current_pdf_exports, record.max_pdf_exports)
        if left is None:
            return PdfExportAllowance(allowed=True, remaining=UNLIMITED_SENTINEL)
        return PdfExportAllowance(allowed=left > 0, remaining=left)

    async def has_feature(self, tenant_id: str, feature: str) -> bool:
        if feature not in BOOLEAN_FEATURES:
            msg = f"Unknown feature flag: {feature!r}"
            raise ValueError(msg)
        record = await self._engine.get_record(tenant_id)
        enabled: bool = getattr(record.features, feature)
        return enabled

    async def can_create_company(self, tenant_id: str, owned_companies: int) -> CompanyAllowance:
        """Whether the owner of ``tenant_id`` may create another company.

        ``owned_companies`` is counted by the caller. The first company is
        always allowed.
        """
        record = await self._engine.get_record(tenant_id)
        limit = record.max_companies
        maximum = limit_to_wire(limit)
        if owned_companies == 0 or not is_exceeded(owned_companies, limit):
            return CompanyAllowance(
                allowed=True, current=owned_companies, maximum=maximum, plan=record.plan
            )
        return CompanyAllowance(
            allowed=False,
            current=owned_companies,
            maximum=maximum,
            plan=record.plan,
            reason=(
                f"The {record.plan} plan allows at most {maximum} companies "
                f"({owned_companies} owned). Upgrade to create more."
            ),
        )

    async def usage_summary(self, tenant_id: str) -> dict[str, ResourceUsage]:
        record = await self._engine.get_record(tenant_id)
        summary: dict[str, ResourceUsage] = {}
        for kind in RESOURCE_FIELDS:
            limit = record.limit_for(kind)
            current = record.usage_for(kind)
            left = remaining(current, limit)
            summary[str(kind)] = ResourceUsage(
                current=current,
                limit=limit_to_wire(limit),
                remaining=UNLIMITED_SENTINEL if left is None else left,
                exceeded=is_exceeded(current, limit),
            )
        return summary
