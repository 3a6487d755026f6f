"""CRON bindings for the insight engine's time-based jobs."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from spendsense.core.config import settings
from spendsense.domain.insights.engine import InsightEngine
from spendsense.domain.insights.retention import RetentionSweeper

logger = logging.getLogger(__name__)

BUDGET_CHECK_JOB_ID = "monthly_budget_check"
RETENTION_SWEEP_JOB_ID = "daily_alert_cleanup"


def create_scheduler(engine: InsightEngine, sweeper: RetentionSweeper) -> AsyncIOScheduler:
    """Create the scheduler with the budget check and retention sweep jobs."""
    scheduler = AsyncIOScheduler(timezone=settings.INSIGHTS_TIMEZONE)

    # Budget breach: previous month, day 1 at 09:00 local
    scheduler.add_job(
        engine.run_monthly_budget_check,
        "cron",
        day=settings.BUDGET_CHECK_DAY,
        hour=settings.BUDGET_CHECK_HOUR,
        minute=0,
        id=BUDGET_CHECK_JOB_ID,
        name="Monthly budget breach check",
        coalesce=True,
        max_instances=1,
    )

    # Alert retention: daily at 02:00 local
    scheduler.add_job(
        sweeper.sweep,
        "cron",
        hour=settings.RETENTION_SWEEP_HOUR,
        minute=0,
        id=RETENTION_SWEEP_JOB_ID,
        name="Clean alerts past retention",
        coalesce=True,
        max_instances=1,
    )

    logger.info("Scheduler configured in %s with %d job(s)", settings.INSIGHTS_TIMEZONE, len(scheduler.get_jobs()))
    return scheduler
