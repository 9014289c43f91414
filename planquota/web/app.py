"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from planquota.config.logging import setup_logging
from planquota.config.settings import get_settings
from planquota.exceptions import InvalidStateError, NotFoundError, TransientStoreError
from planquota.services import Services, build_services
from planquota.web.health import check_health
from planquota.web.middleware import RequestIDMiddleware
from planquota.web.routes.plans import router as plans_router
from planquota.web.routes.quota import router as quota_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger(__name__)

# Domain error -> HTTP status
_ERROR_STATUS: dict[type[Exception], int] = {
    NotFoundError: 404,
    InvalidStateError: 409,
    ValueError: 422,
    TransientStoreError: 503,
}


def create_app(services: Services | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level, json_output=not settings.debug, service="planquota-api"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.use_database:
            from planquota.storage.database import init_db

            await init_db()
        await app.state.services.catalog.bootstrap()
        yield

    app = FastAPI(
        title="planquota",
        description="Plan catalog, usage quotas and feature gates",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services or build_services()

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        status_code = next(_ERROR_STATUS[t] for t in type(exc).__mro__ if t in _ERROR_STATUS)
        if status_code >= 500:
            logger.warning("request_store_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    async def stored_data_error_handler(request: Request, exc: Exception) -> JSONResponse:
        errors = exc.error_count() if isinstance(exc, ValidationError) else None
        logger.error("stored_document_invalid", path=request.url.path, errors=errors)
        return JSONResponse(status_code=500, content={"detail": "Stored data failed validation"})

    for error_type in _ERROR_STATUS:
        app.add_exception_handler(error_type, domain_error_handler)
    # Corrupt stored documents are server faults, not bad requests
    app.add_exception_handler(ValidationError, stored_data_error_handler)

    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/health")
    async def health_check() -> dict[str, object]:
        return await check_health()

    app.include_router(plans_router)
    app.include_router(quota_router)

    logger.info("app_created")
    return app
