"""SQLModel database table models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Return the current time as an aware UTC datetime for TIMESTAMPTZ columns."""
    return datetime.now(UTC)


class StoredDocument(SQLModel, table=True):
    """One JSON document of a named collection (plan templates, quota records)."""

    __tablename__ = "stored_documents"
    __table_args__ = (UniqueConstraint("collection", "key", name="uq_stored_documents_key"),)

    id: int | None = Field(default=None, primary_key=True)
    collection: str = Field(index=True)
    key: str = Field(index=True)
    body_json: str
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
