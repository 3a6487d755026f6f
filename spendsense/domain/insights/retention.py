"""Daily cleanup of stale alerts. Advice insights are kept."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spendsense.core.clock import Clock, as_utc
from spendsense.core.config import settings

from . import services
from .engine import list_owner_ids

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SweepReport:
    owners: int = 0
    deleted: int = 0
    failed_owners: list[str] = field(default_factory=list)


class RetentionSweeper:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock | None = None,
        retention_days: int | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock or Clock.system()
        self.retention_days = retention_days or settings.ALERT_RETENTION_DAYS

    async def sweep(self) -> SweepReport:
        """Delete alerts older than the retention period for every owner."""
        # Whole 24h days in UTC, not Sydney wall-clock days.
        cutoff = as_utc(self.clock.now()) - timedelta(days=self.retention_days)
        report = SweepReport()

        async with self.session_factory() as db:
            owner_ids = await list_owner_ids(db)

        for owner_id in owner_ids:
            report.owners += 1
            try:
                async with self.session_factory() as db:
                    removed = await services.delete_alerts_older_than(
                        db, owner_id=owner_id, cutoff=cutoff
                    )
            except Exception:  # noqa: BLE001
                report.failed_owners.append(owner_id)
                logger.exception("Alert cleanup failed for owner %s", owner_id)
                continue

            if removed:
                logger.info("Cleaned %d old alert(s) for owner %s", removed, owner_id)
            report.deleted += removed

        logger.info(
            "Old alert cleanup complete: %d deleted across %d owner(s), %d failure(s)",
            report.deleted,
            report.owners,
            len(report.failed_owners),
        )
        return report
