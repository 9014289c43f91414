"""Wiring of catalog, engine, transitions and gates over one document store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from planquota.billing.catalog import PlanCatalog
from planquota.billing.events import BillingEventHandler
from planquota.billing.transitions import PlanTransitionManager
from planquota.config.settings import get_settings
from planquota.quota.engine import QuotaEngine
from planquota.quota.gate import FeatureGate
from planquota.storage.document_store import create_document_store
from planquota.storage.repositories.plan_templates import PlanTemplateRepository
from planquota.storage.repositories.quotas import QuotaRepository

if TYPE_CHECKING:
    from planquota.storage.document_store import DocumentStore


@dataclass
class Services:
    store: DocumentStore
    catalog: PlanCatalog
    engine: QuotaEngine
    transitions: PlanTransitionManager
    gate: FeatureGate
    billing_events: BillingEventHandler


def build_services(store: DocumentStore | None = None) -> Services:
    """Build the service graph; the store defaults to the one settings select."""
    settings = get_settings()
    store = store or create_document_store()
    catalog = PlanCatalog(PlanTemplateRepository(store))
    quotas = QuotaRepository(store, catalog)
    engine = QuotaEngine(quotas, catalog, default_plan=settings.default_plan)
    transitions = PlanTransitionManager(quotas, catalog)
    return Services(
        store=store,
        catalog=catalog,
        engine=engine,
        transitions=transitions,
        gate=FeatureGate(engine),
        billing_events=BillingEventHandler(transitions, quotas),
    )
