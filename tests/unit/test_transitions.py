"""Unit tests for plan changes and status updates."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from planquota.billing.limits import UNLIMITED, Bounded
from planquota.billing.transitions import PlanTransitionManager
from planquota.exceptions import InvalidStateError, NotFoundError
from planquota.quota.engine import QuotaEngine
from planquota.types import BillingCycle, DocumentAccessLevel, SubscriptionStatus


@pytest.mark.unit
class TestChangePlan:
    async def test_upgrade_lifts_free_document_block(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        await engine.increment("t1", "documents", 15)
        assert await engine.check_exceeded("t1", "documents") is True

        record = await transitions.change_plan("t1", "starter", BillingCycle.YEARLY)

        assert record.max_documents == UNLIMITED
        assert record.current_documents == 15
        assert await engine.check_exceeded("t1", "documents") is False
        stored = await engine.get_record("t1")
        assert stored.max_documents == UNLIMITED
        assert stored.current_documents == 15

    async def test_change_is_idempotent_for_limits(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        await engine.increment("t1", "customers", 4)
        first = await transitions.change_plan("t1", "business")
        second = await transitions.change_plan("t1", "business")
        assert second.max_users == first.max_users == Bounded(5)
        assert second.features == first.features
        assert second.current_customers == 4

    async def test_paid_plan_sets_billing_period(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        monthly = await transitions.change_plan("t1", "business", BillingCycle.MONTHLY)
        assert monthly.payment_amount == 499
        assert monthly.end_date == datetime(2025, 4, 10, 9, 30, tzinfo=UTC)
        yearly = await transitions.change_plan("t1", "business", BillingCycle.YEARLY)
        assert yearly.payment_amount == 4190
        assert yearly.end_date == datetime(2026, 3, 10, 9, 30, tzinfo=UTC)

    async def test_downgrade_keeps_usage_over_limit(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "business")
        await engine.increment("t1", "customers", 40)
        record = await transitions.change_plan("t1", "free", updated_by="admin")
        assert record.max_customers == Bounded(10)
        assert record.current_customers == 40
        assert record.payment_amount is None
        assert record.end_date is None
        assert record.features.document_access == DocumentAccessLevel.BASIC
        assert await engine.check_exceeded("t1", "customers") is True

    async def test_contact_sales_plan_carries_no_payment(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "starter")
        record = await transitions.change_plan("t1", "enterprise", BillingCycle.YEARLY)
        assert record.payment_amount is None
        assert record.currency is None
        stored = await engine.get_record("t1")
        assert stored.payment_amount is None

    async def test_reactivates_canceled_tenant(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "starter")
        await transitions.update_status("t1", SubscriptionStatus.CANCELED)
        record = await transitions.change_plan("t1", "starter")
        assert record.status == SubscriptionStatus.ACTIVE

    async def test_unknown_plan_is_invalid_state(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        with pytest.raises(InvalidStateError):
            await transitions.change_plan("t1", "platinum")
        assert (await engine.get_record("t1")).plan == "free"

    async def test_missing_record_raises(self, transitions: PlanTransitionManager) -> None:
        with pytest.raises(NotFoundError):
            await transitions.change_plan("ghost", "starter")

    async def test_uses_store_override(
        self, engine: QuotaEngine, transitions: PlanTransitionManager, catalog
    ) -> None:
        await catalog.upsert_template("starter", {"max_customers": 250})
        await engine.create_quota_record("t1", "free")
        record = await transitions.change_plan("t1", "starter")
        assert record.max_customers == Bounded(250)


@pytest.mark.unit
class TestUpdateStatus:
    async def test_only_status_changes(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "starter")
        await engine.increment("t1", "documents", 3)
        record = await transitions.update_status(
            "t1", "suspended", updated_by="billing", notes="card declined"
        )
        stored = await engine.get_record("t1")
        assert record.status == stored.status == SubscriptionStatus.SUSPENDED
        assert stored.notes == "card declined"
        assert stored.plan == "starter"
        assert stored.max_documents == UNLIMITED
        assert stored.current_documents == 3

    async def test_trial_end_date(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        trial_end = datetime(2025, 3, 24, tzinfo=UTC)
        await transitions.update_status("t1", SubscriptionStatus.TRIAL, trial_end_date=trial_end)
        stored = await engine.get_record("t1")
        assert stored.status == SubscriptionStatus.TRIAL
        assert stored.trial_end_date == trial_end

    async def test_unknown_status_rejected(
        self, engine: QuotaEngine, transitions: PlanTransitionManager
    ) -> None:
        await engine.create_quota_record("t1", "free")
        with pytest.raises(ValueError):
            await transitions.update_status("t1", "paused")
