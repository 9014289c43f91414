"""Batch reset of monthly usage counters.

Runs from an external scheduler (cron, a k8s CronJob). Each tenant is reset
independently; one failing tenant never aborts the batch, and records that
no longer validate are logged and left out of the listing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from planquota.utils.retry import retry

if TYPE_CHECKING:
    from datetime import datetime

    from planquota.models.quota import QuotaRecord
    from planquota.quota.engine import QuotaEngine

logger = structlog.get_logger(__name__)


@dataclass
class ResetReport:
    reset: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.reset) + len(self.failed)


async def run_due_resets(
    engine: QuotaEngine,
    now: datetime | None = None,
    attempts: int = 3,
    delay_ms: int = 200,
) -> ResetReport:
    """Reset every tenant whose ``document_reset_date`` has passed."""

    @retry(max_attempts=attempts, delay_ms=delay_ms)
    async def _list_due() -> list[QuotaRecord]:
        return await engine.list_due_for_reset(now)

    report = ResetReport()
    for record in await _list_due():
        try:
            await engine.reset_periodic_counters(record.tenant_id)
        except Exception:
            logger.exception("quota_reset_failed", tenant_id=record.tenant_id)
            report.failed.append(record.tenant_id)
        else:
            report.reset.append(record.tenant_id)

    logger.info("quota_reset_batch_done", reset=len(report.reset), failed=len(report.failed))
    return report
