"""Plan template repository over the document store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from planquota.billing.plans import PlanTemplate

if TYPE_CHECKING:
    from planquota.storage.document_store import DocumentStore

logger = structlog.get_logger(__name__)

PLAN_TEMPLATES_COLLECTION = "plan_templates"


class PlanTemplateRepository:
    """Persists catalog overrides, one document per plan id."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, plan_id: str) -> PlanTemplate | None:
        document = await self._store.get(PLAN_TEMPLATES_COLLECTION, plan_id)
        if document is None:
            return None
        return PlanTemplate.model_validate({**document, "id": plan_id})

    async def get_raw(self, plan_id: str) -> dict[str, Any] | None:
        return await self._store.get(PLAN_TEMPLATES_COLLECTION, plan_id)

    async def list_all(self) -> list[PlanTemplate]:
        documents = await self._store.query(PLAN_TEMPLATES_COLLECTION, order_by="display_order")
        return [PlanTemplate.model_validate(doc) for doc in documents]

    async def save(
        self, template: PlanTemplate, merge: bool = False, exclude: set[str] | None = None
    ) -> None:
        await self._store.put(
            PLAN_TEMPLATES_COLLECTION,
            template.id,
            template.model_dump(mode="json", exclude=exclude),
            merge=merge,
        )
        logger.info("plan_template_saved", plan_id=template.id, merge=merge)

    async def delete(self, plan_id: str) -> bool:
        deleted = await self._store.delete(PLAN_TEMPLATES_COLLECTION, plan_id)
        if deleted:
            logger.info("plan_template_deleted", plan_id=plan_id)
        return deleted
