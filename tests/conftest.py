"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

import planquota.models.database  # noqa: F401 - registers table metadata
from planquota.billing.catalog import PlanCatalog
from planquota.billing.events import BillingEventHandler
from planquota.billing.transitions import PlanTransitionManager
from planquota.quota.engine import QuotaEngine
from planquota.quota.gate import FeatureGate
from planquota.services import Services, build_services
from planquota.storage.memory_store import InMemoryDocumentStore
from planquota.storage.repositories.plan_templates import PlanTemplateRepository
from planquota.storage.repositories.quotas import QuotaRepository
from planquota.web.app import create_app

FIXED_NOW = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def template_repo(store: InMemoryDocumentStore) -> PlanTemplateRepository:
    return PlanTemplateRepository(store)


@pytest.fixture()
def catalog(template_repo: PlanTemplateRepository) -> PlanCatalog:
    return PlanCatalog(template_repo)


@pytest.fixture()
def quota_repo(store: InMemoryDocumentStore, catalog: PlanCatalog) -> QuotaRepository:
    return QuotaRepository(store, catalog)


@pytest.fixture()
def engine(quota_repo: QuotaRepository, catalog: PlanCatalog, clock: FakeClock) -> QuotaEngine:
    return QuotaEngine(quota_repo, catalog, clock=clock)


@pytest.fixture()
def transitions(
    quota_repo: QuotaRepository, catalog: PlanCatalog, clock: FakeClock
) -> PlanTransitionManager:
    return PlanTransitionManager(quota_repo, catalog, clock=clock)


@pytest.fixture()
def gate(engine: QuotaEngine) -> FeatureGate:
    return FeatureGate(engine)


@pytest.fixture()
def billing_events(
    transitions: PlanTransitionManager, quota_repo: QuotaRepository, clock: FakeClock
) -> BillingEventHandler:
    return BillingEventHandler(transitions, quota_repo, clock=clock)


@pytest.fixture()
def services(store: InMemoryDocumentStore) -> Services:
    return build_services(store)


@pytest.fixture()
def app(services: Services):
    """Create a fresh app instance over an in-memory store."""
    return create_app(services)


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture()
async def async_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()
