"""FastAPI dependencies."""

from __future__ import annotations

import structlog
from fastapi import Request

from planquota.services import Services


def get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


async def bind_tenant_context(tenant_id: str) -> str:
    """Bind the path's tenant id into the log context for the rest of the request."""
    structlog.contextvars.bind_contextvars(tenant_id=tenant_id)
    return tenant_id
