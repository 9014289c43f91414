"""Enums and type aliases for planquota."""

from enum import StrEnum


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    TRIAL = "trial"
    EXPIRED = "expired"
    CANCELED = "canceled"
    SUSPENDED = "suspended"


class BillingCycle(StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DocumentAccessLevel(StrEnum):
    BASIC = "basic"
    FULL = "full"


class ResourceKind(StrEnum):
    USERS = "users"
    DOCUMENTS = "documents"
    LOGOS = "logos"
    STORAGE = "storage"
    CUSTOMERS = "customers"
    CONTRACTORS = "contractors"
    PDF_EXPORTS = "pdfExports"
    COMPANIES = "companies"


class PlanId(StrEnum):
    """Plan ids shipped in the built-in catalog. The catalog accepts others."""

    FREE = "free"
    STARTER = "starter"
    BUSINESS = "business"
    ENTERPRISE = "enterprise"


# Document types available on the basic access level
BASIC_DOCUMENT_TYPES = frozenset({"quotation", "receipt", "invoice"})
