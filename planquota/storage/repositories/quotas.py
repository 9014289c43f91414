"""Quota record repository over the document store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from planquota.exceptions import NotFoundError
from planquota.models.quota import QuotaRecord
from planquota.quota.provisioning import MIRRORED_FIELDS, template_fields

if TYPE_CHECKING:
    from planquota.billing.catalog import PlanCatalog
    from planquota.storage.document_store import DocumentStore
    from planquota.types import SubscriptionStatus

logger = structlog.get_logger(__name__)

QUOTAS_COLLECTION = "quota_records"


class QuotaRepository:
    """One quota record per tenant, keyed by tenant id.

    With a catalog, plan-mirrored fields missing from an older document are
    filled from the record's plan template on read instead of falling back to
    free-plan defaults.
    """

    def __init__(self, store: DocumentStore, catalog: PlanCatalog | None = None) -> None:
        self._store = store
        self._catalog = catalog

    async def _fill_missing_plan_fields(self, document: dict[str, Any]) -> dict[str, Any]:
        missing = [field for field in MIRRORED_FIELDS if field not in document]
        if not missing or self._catalog is None:
            return document
        plan_id = document.get("plan") or "free"
        try:
            template = await self._catalog.resolve(plan_id)
        except NotFoundError:
            logger.warning(
                "quota_record_plan_unknown",
                tenant_id=document.get("tenant_id"),
                plan=plan_id,
                missing=missing,
            )
            return document
        mirrored = template_fields(template)
        return {**document, **{field: mirrored[field] for field in missing}}

    async def _to_record(self, tenant_id: str, document: dict[str, Any]) -> QuotaRecord:
        document = await self._fill_missing_plan_fields({**document, "tenant_id": tenant_id})
        return QuotaRecord.model_validate(document)

    async def _to_records(self, documents: list[dict[str, Any]]) -> list[QuotaRecord]:
        """Validate each document on its own; invalid ones are logged and skipped."""
        records: list[QuotaRecord] = []
        for document in documents:
            tenant_id = document.get("tenant_id")
            if not isinstance(tenant_id, str):
                logger.error("quota_record_invalid", tenant_id=tenant_id, errors=1)
                continue
            try:
                records.append(await self._to_record(tenant_id, document))
            except ValidationError as exc:
                logger.error(
                    "quota_record_invalid", tenant_id=tenant_id, errors=exc.error_count()
                )
        return records

    async def get(self, tenant_id: str) -> QuotaRecord | None:
        document = await self._store.get(QUOTAS_COLLECTION, tenant_id)
        if document is None:
            return None
        return await self._to_record(tenant_id, document)

    async def save(self, record: QuotaRecord) -> None:
        """Write the whole record, replacing any previous one."""
        await self._store.put(QUOTAS_COLLECTION, record.tenant_id, record.model_dump(mode="json"))

    async def patch(self, tenant_id: str, updates: dict[str, Any]) -> None:
        """Merge-write only the given fields, serialized the way a full record would be."""
        unknown = set(updates) - set(QuotaRecord.model_fields)
        if unknown:
            msg = f"Unknown quota record fields: {sorted(unknown)}"
            raise ValueError(msg)
        partial = QuotaRecord.model_construct(**{"tenant_id": tenant_id, **updates})
        document = partial.model_dump(mode="json", include=set(updates))
        await self._store.put(QUOTAS_COLLECTION, tenant_id, document, merge=True)

    async def list_all(self) -> list[QuotaRecord]:
        documents = await self._store.query(QUOTAS_COLLECTION, order_by="tenant_id")
        return await self._to_records(documents)

    async def list_by_status(self, status: SubscriptionStatus) -> list[QuotaRecord]:
        documents = await self._store.query(
            QUOTAS_COLLECTION, filters={"status": str(status)}, order_by="tenant_id"
        )
        return await self._to_records(documents)
