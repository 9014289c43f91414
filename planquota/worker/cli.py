"""CLI entry point for the monthly counter reset job."""

from __future__ import annotations

import asyncio
import sys

import structlog

from planquota.config.logging import setup_logging
from planquota.config.settings import get_settings
from planquota.services import build_services
from planquota.worker.reset_job import ResetReport, run_due_resets

logger = structlog.get_logger(__name__)


async def _run() -> ResetReport:
    settings = get_settings()
    if settings.use_database:
        from planquota.storage.database import init_db

        await init_db()
    services = build_services()
    return await run_due_resets(
        services.engine,
        attempts=settings.store_retry_attempts,
        delay_ms=settings.store_retry_delay_ms,
    )


def main() -> None:
    """Reset due tenants once and exit non-zero if any failed."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_output=True, service="planquota-reset")
    logger.info("quota_reset_job_started", use_database=settings.use_database)
    report = asyncio.run(_run())
    if report.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
