"""Async database engine and schema creation."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

from planquota.config.settings import get_settings


@lru_cache
def get_engine() -> AsyncEngine:
    """Return a cached async database engine (singleton per process)."""
    settings = get_settings()
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=settings.debug)
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables (for dev/testing only)."""
    import planquota.models.database  # noqa: F401 - registers table metadata

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
