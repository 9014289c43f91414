"""In-memory document store for development and tests."""

from __future__ import annotations

import copy
from typing import Any

import structlog

from planquota.storage.document_store import DocumentStore, matches, sort_documents

logger = structlog.get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        document = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    async def put(
        self, collection: str, key: str, value: dict[str, Any], merge: bool = False
    ) -> None:
        documents = self._collections.setdefault(collection, {})
        if merge and key in documents:
            documents[key].update(copy.deepcopy(value))
        else:
            documents[key] = copy.deepcopy(value)
        logger.debug("memory_store_put", collection=collection, key=key, merge=merge)

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        found = [
            copy.deepcopy(doc)
            for doc in self._collections.get(collection, {}).values()
            if matches(doc, filters)
        ]
        return sort_documents(found, order_by)

    async def delete(self, collection: str, key: str) -> bool:
        return self._collections.get(collection, {}).pop(key, None) is not None
