"""Run one of the scheduled insight jobs once (for external cron)."""

import argparse
import asyncio
import logging
from datetime import datetime
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from spendsense.core.clock import Clock  # noqa: E402
from spendsense.core.database import AsyncSessionLocal, init_db  # noqa: E402
from spendsense.core.logging_config import setup_logging  # noqa: E402
from spendsense.domain.insights.engine import InsightEngine  # noqa: E402
from spendsense.domain.insights.retention import RetentionSweeper  # noqa: E402

JOBS = ("budget-check", "retention-sweep")

logger = logging.getLogger("spendsense.scripts.run_job")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a scheduled insight job once")
    parser.add_argument("job", choices=JOBS, help="Job to run")
    parser.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="Pretend the job runs at this ISO timestamp (naive values are UTC)",
    )
    return parser.parse_args()


async def run(job: str, at: datetime | None) -> int:
    await init_db()
    clock = Clock.fixed(at) if at is not None else Clock.system()

    if job == "budget-check":
        engine = InsightEngine(AsyncSessionLocal, clock=clock)
        reports = await engine.run_monthly_budget_check()
        return 1 if any(report.failed for report in reports) else 0

    sweeper = RetentionSweeper(AsyncSessionLocal, clock=clock)
    report = await sweeper.sweep()
    return 1 if report.failed_owners else 0


if __name__ == "__main__":
    setup_logging()
    args = parse_args()
    sys.exit(asyncio.run(run(args.job, args.at)))
