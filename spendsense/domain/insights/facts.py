"""Read-only fact loaders backing the insight rules.

A loader runs the aggregator queries one rule needs and returns them as a
``Facts`` bundle; the rule's decision function then works on that bundle
alone. Loaders never write.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import Clock
from spendsense.domain.records.models import (
    RECORD_TYPE_EXPENSE,
    RECORD_TYPE_INCOME,
    FinancialRecord,
)
from spendsense.services.analytics import (
    MonthRange,
    MonthTotals,
    count_records,
    latest_records,
    month_range,
    month_totals,
    trailing_start,
    window_filter,
)

from . import services
from .catalog import NEGATIVE_BALANCE
from .events import TriggerEvent
from .services import InsightSelector

INCOME_LOOKBACK = 3


@dataclass(slots=True)
class Facts:
    history: list[FinancialRecord] = field(default_factory=list)
    prior_count: int = 0
    month: MonthRange | None = None
    totals: MonthTotals | None = None
    negative_alert_live: bool = False


FactLoader = Callable[[AsyncSession, TriggerEvent, Clock], Awaitable[Facts]]


def negative_balance_selector(month: MonthRange) -> InsightSelector:
    return InsightSelector(
        kind=NEGATIVE_BALANCE.kind,
        titles=(NEGATIVE_BALANCE.title,),
        created_from=month.start,
        created_to=month.end,
    )


def category_window(days: int) -> FactLoader:
    """Same-category expenses in the trailing ``days``, minus the trigger."""

    async def load(db: AsyncSession, event: TriggerEvent, clock: Clock) -> Facts:
        history = await window_filter(
            db,
            owner_id=event.owner_id,
            record_type=RECORD_TYPE_EXPENSE,
            category=event.payload.category,
            from_time=trailing_start(clock.now(), days),
            exclude_id=event.record_id,
        )
        return Facts(history=history)

    return load


async def category_usage(db: AsyncSession, event: TriggerEvent, clock: Clock) -> Facts:
    # Two is enough to tell "first or second use" from "established".
    prior = await count_records(
        db,
        owner_id=event.owner_id,
        record_type=RECORD_TYPE_EXPENSE,
        category=event.payload.category,
        exclude_id=event.record_id,
        limit=2,
    )
    return Facts(prior_count=prior)


async def recent_incomes(db: AsyncSession, event: TriggerEvent, clock: Clock) -> Facts:
    history = await latest_records(
        db,
        owner_id=event.owner_id,
        record_type=RECORD_TYPE_INCOME,
        limit=INCOME_LOOKBACK,
        exclude_id=event.record_id,
    )
    return Facts(history=history)


def monthly_balance(offset: int = 0) -> FactLoader:
    """Income and expense totals for the current month shifted by ``offset``."""

    async def load(db: AsyncSession, event: TriggerEvent, clock: Clock) -> Facts:
        month = month_range(clock.now(), clock.tz, offset)
        totals = await month_totals(db, owner_id=event.owner_id, month=month)
        return Facts(month=month, totals=totals)

    return load


async def recovery_context(db: AsyncSession, event: TriggerEvent, clock: Clock) -> Facts:
    facts = await monthly_balance()(db, event, clock)
    facts.history = (await recent_incomes(db, event, clock)).history
    facts.negative_alert_live = await services.exists(
        db, owner_id=event.owner_id, selector=negative_balance_selector(facts.month)
    )
    return facts
