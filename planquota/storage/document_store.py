"""Abstract document store interface for catalog and quota persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """Abstract base class for a keyed JSON document store.

    Documents live in named collections and are plain JSON-compatible dicts.
    Implementations raise ``TransientStoreError`` for retryable backend
    failures and let everything else propagate.
    """

    @abstractmethod
    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return the document at ``key``, or None if absent."""

    @abstractmethod
    async def put(
        self, collection: str, key: str, value: dict[str, Any], merge: bool = False
    ) -> None:
        """Write a document.

        With ``merge=True`` top-level fields in ``value`` overwrite the stored
        ones and omitted fields are left untouched; a missing document is
        created from ``value``. Otherwise the document is replaced.
        """

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return documents whose top-level fields equal every filter value.

        ``order_by`` sorts ascending by a top-level field; documents missing
        the field sort last.
        """

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """Delete a document. Returns True if it existed."""


def matches(document: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(document.get(field) == value for field, value in filters.items())


def sort_documents(documents: list[dict[str, Any]], order_by: str | None) -> list[dict[str, Any]]:
    if not order_by:
        return documents
    return sorted(
        documents,
        key=lambda doc: (doc.get(order_by) is None, doc.get(order_by) or 0),
    )


def create_document_store() -> DocumentStore:
    """Factory: create the appropriate DocumentStore based on settings."""
    from planquota.config.settings import get_settings

    settings = get_settings()
    if settings.use_database:
        from planquota.storage.database import get_engine
        from planquota.storage.sql_store import SqlDocumentStore

        return SqlDocumentStore(get_engine())

    from planquota.storage.memory_store import InMemoryDocumentStore

    return InMemoryDocumentStore()
