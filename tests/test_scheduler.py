from spendsense.domain.insights.retention import RetentionSweeper
from spendsense.services.scheduler import BUDGET_CHECK_JOB_ID, RETENTION_SWEEP_JOB_ID, create_scheduler


async def test_scheduler_registers_both_jobs(insight_engine, session_factory, clock):
    scheduler = create_scheduler(insight_engine, RetentionSweeper(session_factory, clock=clock))

    budget = scheduler.get_job(BUDGET_CHECK_JOB_ID)
    sweep = scheduler.get_job(RETENTION_SWEEP_JOB_ID)

    assert str(scheduler.timezone) == "Australia/Sydney"
    assert str(budget.trigger) == "cron[day='1', hour='9', minute='0']"
    assert str(sweep.trigger) == "cron[hour='2', minute='0']"
    assert budget.func == insight_engine.run_monthly_budget_check
    assert not scheduler.running
