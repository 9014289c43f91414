"""Document store backed by a single SQL table via SQLModel."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from planquota.exceptions import TransientStoreError
from planquota.models.database import StoredDocument, _utc_now
from planquota.storage.document_store import DocumentStore, matches, sort_documents

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


def _transient(operation: str, collection: str, exc: Exception) -> TransientStoreError:
    logger.warning(
        "sql_store_transient_error",
        operation=operation,
        collection=collection,
        error=str(exc),
    )
    return TransientStoreError(f"Store {operation} failed on {collection}")


@contextmanager
def _transient_errors(operation: str, collection: str) -> Iterator[None]:
    """Translate connection-level database failures into TransientStoreError."""
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        raise _transient(operation, collection, exc) from exc
    except DBAPIError as exc:
        if not exc.connection_invalidated:
            raise
        raise _transient(operation, collection, exc) from exc


class SqlDocumentStore(DocumentStore):
    """Stores each document as a JSON row keyed by (collection, key)."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def _load_row(
        self, session: AsyncSession, collection: str, key: str
    ) -> StoredDocument | None:
        statement = select(StoredDocument).where(
            col(StoredDocument.collection) == collection,
            col(StoredDocument.key) == key,
        )
        results = await session.execute(statement)
        return results.scalars().first()

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with _transient_errors("get", collection):
            async with AsyncSession(self._engine) as session:
                row = await self._load_row(session, collection, key)
        if row is None:
            return None
        document: dict[str, Any] = json.loads(row.body_json)
        return document

    async def put(
        self, collection: str, key: str, value: dict[str, Any], merge: bool = False
    ) -> None:
        with _transient_errors("put", collection):
            async with AsyncSession(self._engine) as session:
                row = await self._load_row(session, collection, key)
                if row is None:
                    session.add(
                        StoredDocument(
                            collection=collection, key=key, body_json=json.dumps(value)
                        )
                    )
                else:
                    body = json.loads(row.body_json) if merge else {}
                    body.update(value)
                    row.body_json = json.dumps(body)
                    row.updated_at = _utc_now()
                    session.add(row)
                await session.commit()
        logger.debug("sql_store_put", collection=collection, key=key, merge=merge)

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        with _transient_errors("query", collection):
            async with AsyncSession(self._engine) as session:
                statement = select(StoredDocument).where(
                    col(StoredDocument.collection) == collection
                )
                results = await session.execute(statement)
                rows = results.scalars().all()
        documents = [json.loads(row.body_json) for row in rows]
        return sort_documents([doc for doc in documents if matches(doc, filters)], order_by)

    async def delete(self, collection: str, key: str) -> bool:
        with _transient_errors("delete", collection):
            async with AsyncSession(self._engine) as session:
                row = await self._load_row(session, collection, key)
                if row is None:
                    return False
                await session.delete(row)
                await session.commit()
        return True
