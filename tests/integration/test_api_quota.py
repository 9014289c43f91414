"""HTTP tests for tenant quota routes."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from planquota.services import Services
from planquota.storage.repositories.quotas import QUOTAS_COLLECTION


@pytest.mark.integration
class TestQuotaRoutes:
    async def test_create_and_get(self, client: AsyncClient) -> None:
        resp = await client.post("/api/tenants/t1/quota", json={"plan_id": "starter"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["plan"] == "starter"
        assert data["max_documents"] == -1
        assert data["current_documents"] == 0

        resp = await client.get("/api/tenants/t1/quota")
        assert resp.status_code == 200
        assert resp.json()["tenant_id"] == "t1"

    async def test_create_without_body_uses_default_plan(self, client: AsyncClient) -> None:
        resp = await client.post("/api/tenants/t1/quota")
        assert resp.status_code == 201
        assert resp.json()["plan"] == "free"

    async def test_missing_record_is_404(self, client: AsyncClient) -> None:
        resp = await client.get("/api/tenants/ghost/quota")
        assert resp.status_code == 404
        assert "ghost" in resp.json()["detail"]

    async def test_increment_until_exceeded(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.post("/api/tenants/t1/quota/documents/increment", json={"amount": 14})
        assert resp.json()["current"] == 14
        resp = await client.get("/api/tenants/t1/quota/documents/exceeded")
        assert resp.json()["exceeded"] is False

        await client.post("/api/tenants/t1/quota/documents/increment")
        resp = await client.get("/api/tenants/t1/quota/documents/exceeded")
        assert resp.json()["exceeded"] is True

    async def test_decrement(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        await client.post("/api/tenants/t1/quota/customers/increment", json={"amount": 3})
        resp = await client.post("/api/tenants/t1/quota/customers/decrement", json={"amount": 5})
        assert resp.status_code == 200
        assert resp.json()["current"] == 0

    async def test_increment_stamps_last_used(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        await client.post("/api/tenants/t1/quota/users/increment")
        resp = await client.get("/api/tenants/t1/quota")
        assert resp.json()["last_used_at"] is not None

    async def test_unknown_kind_is_422(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.post("/api/tenants/t1/quota/robots/increment")
        assert resp.status_code == 422

    async def test_non_positive_amount_is_422(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.post("/api/tenants/t1/quota/users/increment", json={"amount": 0})
        assert resp.status_code == 422

    async def test_reset(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        await client.post("/api/tenants/t1/quota/documents/increment", json={"amount": 5})
        resp = await client.post("/api/tenants/t1/quota/reset")
        assert resp.status_code == 200
        assert "next_reset" in resp.json()
        record = (await client.get("/api/tenants/t1/quota")).json()
        assert record["current_documents"] == 0


@pytest.mark.integration
class TestPlanAndStatusRoutes:
    async def test_change_plan(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        await client.post("/api/tenants/t1/quota/documents/increment", json={"amount": 15})
        resp = await client.put(
            "/api/tenants/t1/plan", json={"plan_id": "starter", "billing_cycle": "yearly"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["max_documents"] == -1
        assert data["current_documents"] == 15
        assert data["payment_amount"] == 1690

    async def test_change_to_unknown_plan_is_409(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.put("/api/tenants/t1/plan", json={"plan_id": "platinum"})
        assert resp.status_code == 409

    async def test_update_status(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.put(
            "/api/tenants/t1/status", json={"status": "suspended", "notes": "overdue"}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "suspended"

    async def test_invalid_status_is_422(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.put("/api/tenants/t1/status", json={"status": "paused"})
        assert resp.status_code == 422


@pytest.mark.integration
class TestEntitlementRoutes:
    async def test_document_access(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.get("/api/tenants/t1/documents/quotation/access")
        assert resp.json()["allowed"] is True
        resp = await client.get("/api/tenants/t1/documents/customReport/access")
        assert resp.json()["allowed"] is False

    async def test_pdf_export_enterprise(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota", json={"plan_id": "enterprise"})
        resp = await client.get("/api/tenants/t1/pdf-export")
        assert resp.json() == {"allowed": True, "remaining": -1}

    async def test_feature_flag(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota", json={"plan_id": "enterprise"})
        resp = await client.get("/api/tenants/t1/features/api_access")
        assert resp.json()["enabled"] is True
        resp = await client.get("/api/tenants/t1/features/teleport")
        assert resp.status_code == 422

    async def test_company_allowance(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.get("/api/tenants/t1/companies/allowance", params={"owned": 1})
        data = resp.json()
        assert data["allowed"] is False
        assert data["maximum"] == 1

    async def test_usage_summary(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        await client.post("/api/tenants/t1/quota/pdfExports/increment", json={"amount": 20})
        resp = await client.get("/api/tenants/t1/usage")
        data = resp.json()
        assert data["pdfExports"] == {"current": 20, "limit": 20, "remaining": 0, "exceeded": True}


@pytest.mark.integration
class TestStoredDataFaults:
    async def test_corrupt_record_is_server_error(
        self, client: AsyncClient, services: Services
    ) -> None:
        await client.post("/api/tenants/t1/quota")
        await services.store.put(QUOTAS_COLLECTION, "t1", {"max_documents": -7}, merge=True)
        resp = await client.get("/api/tenants/t1/quota/documents/exceeded")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Stored data failed validation"

    async def test_bad_argument_is_still_422(self, client: AsyncClient) -> None:
        await client.post("/api/tenants/t1/quota")
        resp = await client.get("/api/tenants/t1/features/teleport")
        assert resp.status_code == 422
