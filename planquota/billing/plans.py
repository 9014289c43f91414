"""Plan template definitions and the built-in default catalog."""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from planquota.billing.limits import UNLIMITED, Bounded, LimitField
from planquota.types import BillingCycle, DocumentAccessLevel

if TYPE_CHECKING:
    from collections.abc import Mapping

# Bump whenever DEFAULT_PLAN_TEMPLATES changes so deployments can tell which
# built-in table seeded their store.
CATALOG_VERSION = "2025.2"

FREE_PRICE = 0
CONTACT_SALES_PRICE = -1

# Numeric limits mirrored from a template onto every quota record
LIMIT_FIELDS: tuple[str, ...] = (
    "max_users",
    "max_documents",
    "max_logos",
    "max_storage_mb",
    "max_customers",
    "max_contractors",
    "max_pdf_exports",
    "max_companies",
    "history_retention_days",
)


class PlanFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    multiple_profiles: bool = False
    api_access: bool = False
    custom_domain: bool = False
    priority_support: bool = False
    export_pdf: bool = True
    export_excel: bool = False
    advanced_reports: bool = False
    custom_templates: bool = False
    document_access: DocumentAccessLevel = DocumentAccessLevel.BASIC
    has_watermark: bool = True
    line_notification: bool = False
    dedicated_support: bool = False
    audit_log: bool = False


# Boolean flags that FeatureGate.has_feature can answer
BOOLEAN_FEATURES: frozenset[str] = frozenset(
    name for name, field in PlanFeatures.model_fields.items() if field.annotation is bool
)


class PlanTemplate(BaseModel):
    """Catalog definition of limits, features and price for one plan."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    name_th: str = ""
    description: str = ""
    description_th: str = ""

    # Limits (-1 on the wire means unlimited)
    max_users: LimitField
    max_documents: LimitField  # per month
    max_logos: LimitField
    max_storage_mb: LimitField
    max_customers: LimitField
    max_contractors: LimitField
    max_pdf_exports: LimitField  # per month
    max_companies: LimitField
    history_retention_days: LimitField  # unlimited = full audit log
    allow_custom_logo: bool = False

    features: PlanFeatures = PlanFeatures()

    # Pricing: 0 = free, -1 = contact sales
    price_monthly: int = FREE_PRICE
    price_yearly: int = FREE_PRICE
    currency: str = "THB"

    # Opaque payment-processor catalog ids
    stripe_product_id: str | None = None
    stripe_price_monthly_id: str | None = None
    stripe_price_yearly_id: str | None = None

    # Display
    display_order: int = 0
    is_active: bool = True
    is_popular: bool = False
    color: str = "#6B7280"
    badge: str | None = None
    highlights: list[str] = []

    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    @field_validator("price_monthly", "price_yearly")
    @classmethod
    def _check_price(cls, value: int) -> int:
        if value < 0 and value != CONTACT_SALES_PRICE:
            msg = f"Price must be >= 0 or {CONTACT_SALES_PRICE} (contact sales), got {value}"
            raise ValueError(msg)
        return value

    @property
    def is_free(self) -> bool:
        return self.price_monthly == FREE_PRICE

    @property
    def is_contact_sales(self) -> bool:
        return self.price_monthly == CONTACT_SALES_PRICE

    def price_id_for(self, billing_cycle: BillingCycle) -> str | None:
        if billing_cycle == BillingCycle.YEARLY:
            return self.stripe_price_yearly_id
        return self.stripe_price_monthly_id


def calculate_price(template: PlanTemplate, billing_cycle: BillingCycle) -> int:
    """Price charged for one cycle: 0 for free plans, -1 for contact sales."""
    if template.price_monthly == FREE_PRICE:
        return FREE_PRICE
    if template.price_monthly == CONTACT_SALES_PRICE:
        return CONTACT_SALES_PRICE
    if billing_cycle == BillingCycle.YEARLY:
        return template.price_yearly
    return template.price_monthly


def calculate_yearly_discount(template: PlanTemplate) -> int:
    """Whole-percent saving of the yearly price over twelve monthly payments."""
    if template.price_monthly <= 0:
        return 0
    monthly_total = template.price_monthly * 12
    return round((monthly_total - template.price_yearly) / monthly_total * 100)


_DEFAULTS: dict[str, PlanTemplate] = {
    "free": PlanTemplate(
        id="free",
        name="Free",
        name_th="ทดลองใช้",
        description="Perfect for trying out our service",
        description_th="เหมาะสำหรับทดลองใช้งานระบบ",
        max_users=Bounded(1),
        max_documents=Bounded(15),
        max_logos=Bounded(1),
        max_storage_mb=Bounded(50),
        max_customers=Bounded(10),
        max_contractors=Bounded(2),
        max_pdf_exports=Bounded(20),
        max_companies=Bounded(1),
        history_retention_days=Bounded(7),
        allow_custom_logo=False,
        features=PlanFeatures(
            export_pdf=True,
            document_access=DocumentAccessLevel.BASIC,
            has_watermark=True,
        ),
        price_monthly=0,
        price_yearly=0,
        display_order=1,
        color="#6B7280",
        highlights=[
            "Free trial",
            "Basic documents (quotation, receipt)",
            "15 documents per month",
            "10 customers, 2 contractors",
        ],
    ),
    "starter": PlanTemplate(
        id="starter",
        name="Starter",
        name_th="ผู้เริ่มทำธุรกิจ",
        description="For freelancers and small contractors",
        description_th="สำหรับฟรีแลนซ์และช่างรายย่อย",
        max_users=Bounded(1),
        max_documents=UNLIMITED,
        max_logos=Bounded(5),
        max_storage_mb=Bounded(500),
        max_customers=Bounded(100),
        max_contractors=Bounded(20),
        max_pdf_exports=UNLIMITED,
        max_companies=Bounded(1),
        history_retention_days=Bounded(365),
        allow_custom_logo=True,
        features=PlanFeatures(
            export_pdf=True,
            export_excel=True,
            custom_templates=True,
            document_access=DocumentAccessLevel.FULL,
            has_watermark=False,
        ),
        price_monthly=199,
        price_yearly=1690,
        display_order=2,
        color="#3B82F6",
        badge="Best value",
        highlights=[
            "Unlimited documents",
            "Every document type",
            "No watermark",
            "Custom logo",
            "100 customers, 20 contractors",
            "1 year document history",
        ],
    ),
    "business": PlanTemplate(
        id="business",
        name="Business",
        name_th="SME/ทีมงาน",
        description="For small and medium businesses",
        description_th="สำหรับธุรกิจขนาดเล็ก-กลางและทีมงาน",
        max_users=Bounded(5),
        max_documents=UNLIMITED,
        max_logos=Bounded(20),
        max_storage_mb=Bounded(2000),
        max_customers=UNLIMITED,
        max_contractors=UNLIMITED,
        max_pdf_exports=UNLIMITED,
        max_companies=Bounded(3),
        history_retention_days=Bounded(1095),
        allow_custom_logo=True,
        features=PlanFeatures(
            multiple_profiles=True,
            priority_support=True,
            export_pdf=True,
            export_excel=True,
            advanced_reports=True,
            custom_templates=True,
            document_access=DocumentAccessLevel.FULL,
            has_watermark=False,
            line_notification=True,
        ),
        price_monthly=499,
        price_yearly=4190,
        display_order=3,
        is_popular=True,
        color="#F59E0B",
        badge="Most popular",
        highlights=[
            "5 users",
            "Unlimited documents of every type",
            "Unlimited customers and contractors",
            "Sales summary per customer",
            "Share links and LINE notifications",
            "3 years document history",
        ],
    ),
    "enterprise": PlanTemplate(
        id="enterprise",
        name="Enterprise",
        name_th="องค์กรใหญ่",
        description="For large organizations",
        description_th="สำหรับองค์กรขนาดใหญ่",
        max_users=UNLIMITED,
        max_documents=UNLIMITED,
        max_logos=UNLIMITED,
        max_storage_mb=UNLIMITED,
        max_customers=UNLIMITED,
        max_contractors=UNLIMITED,
        max_pdf_exports=UNLIMITED,
        max_companies=UNLIMITED,
        history_retention_days=UNLIMITED,
        allow_custom_logo=True,
        features=PlanFeatures(
            multiple_profiles=True,
            api_access=True,
            custom_domain=True,
            priority_support=True,
            export_pdf=True,
            export_excel=True,
            advanced_reports=True,
            custom_templates=True,
            document_access=DocumentAccessLevel.FULL,
            has_watermark=False,
            line_notification=True,
            dedicated_support=True,
            audit_log=True,
        ),
        price_monthly=CONTACT_SALES_PRICE,
        price_yearly=CONTACT_SALES_PRICE,
        display_order=4,
        color="#8B5CF6",
        highlights=[
            "Unlimited users",
            "Everything unlimited",
            "API access",
            "Custom reports",
            "Full audit log",
            "Dedicated account manager",
        ],
    ),
}

DEFAULT_PLAN_TEMPLATES: Mapping[str, PlanTemplate] = MappingProxyType(_DEFAULTS)
