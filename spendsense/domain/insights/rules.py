"""Declarative insight rules.

Every rule is one row in ``RULES``: the event it listens to, the payload
fields it cannot work without, a read-only fact loader and a pure decision
function. Decision functions return a list of ``NoAction``, ``Emit`` or
``Retract`` values and never touch storage; the engine applies them.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Callable, Union

from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import Clock
from spendsense.services.analytics import ZERO, average

from . import catalog, facts
from .catalog import InsightTemplate, money
from .events import EventType, TriggerEvent
from .facts import FactLoader, Facts
from .services import InsightDraft, InsightSelector

MIN_HISTORY = 2
NEW_CATEGORY_MAX_PRIOR = 1
INCOME_DROP_RATIO = Decimal("0.5")
STRONG_RECOVERY_RATIO = Decimal("1.3")

RECORD_FIELDS = ("record_id", "amount", "occurred_at")
EXPENSE_FIELDS = RECORD_FIELDS + ("category",)


@dataclass(frozen=True, slots=True)
class NoAction:
    reason: str


@dataclass(frozen=True, slots=True)
class Emit:
    draft: InsightDraft


@dataclass(frozen=True, slots=True)
class Retract:
    selector: InsightSelector


Decision = Union[NoAction, Emit, Retract]
Decide = Callable[[TriggerEvent, Facts, Clock], list[Decision]]


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    trigger: EventType
    load: FactLoader
    decide: Decide
    required: tuple[str, ...] = ()

    async def evaluate(self, db: AsyncSession, event: TriggerEvent, clock: Clock) -> list[Decision]:
        gathered = await self.load(db, event, clock)
        return self.decide(event, gathered, clock)


@dataclass(frozen=True, slots=True)
class CategoryThreshold:
    """Alert when an expense reaches ``ratio`` times its category average."""

    template: InsightTemplate
    window_days: int
    ratio: Decimal
    min_history: int = MIN_HISTORY


OVERSPENDING = CategoryThreshold(catalog.HIGH_SPENDING, window_days=28, ratio=Decimal("1.4"))
CATEGORY_SPIKE = CategoryThreshold(catalog.CATEGORY_SPIKE, window_days=7, ratio=Decimal("2.0"))


def exceeds_category_average(
    threshold: CategoryThreshold, event: TriggerEvent, gathered: Facts, clock: Clock
) -> list[Decision]:
    if len(gathered.history) < threshold.min_history:
        return [NoAction("insufficient history")]

    baseline = average(gathered.history)
    if baseline is None or baseline <= ZERO:
        return [NoAction("no baseline")]

    amount = event.payload.amount
    if amount < baseline * threshold.ratio:
        return [NoAction("below threshold")]

    draft = threshold.template.render(
        date_bucket=clock.local_date(event.payload.occurred_at),
        category=event.payload.category,
        amount=money(amount),
        average=money(baseline),
    )
    return [Emit(draft)]


def first_in_category(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    # One prior record still counts as "new" to absorb concurrent first inserts.
    if gathered.prior_count > NEW_CATEGORY_MAX_PRIOR:
        return [NoAction("established category")]

    draft = catalog.NEW_CATEGORY.render(
        date_bucket=clock.local_date(event.payload.occurred_at),
        category=event.payload.category,
        amount=money(event.payload.amount),
    )
    return [Emit(draft)]


def income_drop(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    baseline = average(gathered.history)
    if baseline is None:
        return [NoAction("insufficient history")]
    if baseline == ZERO:
        return [NoAction("no baseline")]

    amount = event.payload.amount
    if amount >= baseline * INCOME_DROP_RATIO:
        return [NoAction("within normal range")]

    draft = catalog.INCOME_DROP.render(
        date_bucket=clock.local_date(event.payload.occurred_at),
        amount=money(amount),
        average=money(baseline),
    )
    return [Emit(draft)]


def _balance_values(gathered: Facts) -> dict[str, str]:
    return {"income": money(gathered.totals.income), "expense": money(gathered.totals.expense)}


def negative_balance(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    totals = gathered.totals
    if totals.income == ZERO:
        return [NoAction("no income this month")]
    if totals.expense <= totals.income:
        return [NoAction("balance not negative")]

    draft = catalog.NEGATIVE_BALANCE.render(
        date_bucket=gathered.month.first_day, **_balance_values(gathered)
    )
    return [Emit(draft)]


def balance_recovery(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    totals = gathered.totals
    if totals.income <= totals.expense:
        return [NoAction("balance not positive")]
    if not gathered.negative_alert_live:
        return [NoAction("no negative balance alert this month")]

    recent_average = average(gathered.history) or ZERO
    if totals.income > recent_average * STRONG_RECOVERY_RATIO:
        template = catalog.STRONG_RECOVERY
    else:
        template = catalog.BALANCE_RECOVERED

    draft = template.render(date_bucket=gathered.month.first_day, **_balance_values(gathered))
    return [Emit(draft)]


def budget_breach(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    totals = gathered.totals
    if totals.income == ZERO:
        return [NoAction("no income last month")]
    if totals.expense <= totals.income:
        return [NoAction("within budget")]

    draft = catalog.BUDGET_BREACH.render(
        date_bucket=gathered.month.first_day, **_balance_values(gathered)
    )
    return [Emit(draft)]


def recheck_after_expense_delete(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    totals = gathered.totals
    if totals.expense > totals.income:
        return [NoAction("balance still negative")]

    decisions: list[Decision] = [Retract(facts.negative_balance_selector(gathered.month))]
    # Only advise when the month has income; an empty month gets no "$0 vs $0" advice.
    if totals.income > ZERO:
        draft = catalog.BALANCE_RESTORED.render(
            date_bucket=gathered.month.first_day, **_balance_values(gathered)
        )
        decisions.append(Emit(draft))
    return decisions


def recheck_after_income_delete(event: TriggerEvent, gathered: Facts, clock: Clock) -> list[Decision]:
    totals = gathered.totals
    if totals.income > totals.expense:
        return [NoAction("balance still positive")]

    month = gathered.month
    decisions: list[Decision] = [
        Retract(
            InsightSelector(
                kind=catalog.STRONG_RECOVERY.kind,
                titles=catalog.RECOVERY_TITLES,
                created_from=month.start,
                created_to=month.end,
            )
        )
    ]
    # Only re-alert when the month has expenses; an empty month stays silent.
    if totals.expense > ZERO:
        draft = catalog.NEGATIVE_BALANCE.render(
            date_bucket=month.first_day, **_balance_values(gathered)
        )
        decisions.append(Emit(draft))
    return decisions


RULES: tuple[Rule, ...] = (
    Rule(
        "overspending",
        EventType.EXPENSE_CREATED,
        facts.category_window(OVERSPENDING.window_days),
        partial(exceeds_category_average, OVERSPENDING),
        EXPENSE_FIELDS,
    ),
    Rule(
        "category_spike",
        EventType.EXPENSE_CREATED,
        facts.category_window(CATEGORY_SPIKE.window_days),
        partial(exceeds_category_average, CATEGORY_SPIKE),
        EXPENSE_FIELDS,
    ),
    Rule("new_category", EventType.EXPENSE_CREATED, facts.category_usage, first_in_category, EXPENSE_FIELDS),
    Rule("income_drop", EventType.INCOME_CREATED, facts.recent_incomes, income_drop, RECORD_FIELDS),
    Rule("negative_balance", EventType.EXPENSE_CREATED, facts.monthly_balance(), negative_balance, RECORD_FIELDS),
    Rule("balance_recovery", EventType.INCOME_CREATED, facts.recovery_context, balance_recovery, RECORD_FIELDS),
    Rule("budget_breach", EventType.MONTHLY_TICK, facts.monthly_balance(offset=-1), budget_breach),
    Rule(
        "recheck_after_expense_delete",
        EventType.EXPENSE_DELETED,
        facts.monthly_balance(),
        recheck_after_expense_delete,
    ),
    Rule(
        "recheck_after_income_delete",
        EventType.INCOME_DELETED,
        facts.monthly_balance(),
        recheck_after_income_delete,
    ),
)


def rules_for(event_type: EventType, rules: tuple[Rule, ...] = RULES) -> list[Rule]:
    return [rule for rule in rules if rule.trigger == event_type]
