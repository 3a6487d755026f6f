"""Trigger dispatcher: routes events to rules and applies their decisions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spendsense.core.clock import Clock
from spendsense.domain.users.models import User
from spendsense.services.push_client import PushNotifier

from . import services
from .events import EventType, TriggerEvent
from .rules import RULES, Decision, Emit, NoAction, Retract, Rule, rules_for
from .services import Created

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RuleReport:
    rule: str
    owner_id: str
    decisions: list[Decision] = field(default_factory=list)
    created: int = 0
    deduplicated: int = 0
    retracted: int = 0
    notified: int = 0
    skipped: str | None = None
    failed: bool = False


async def list_owner_ids(db: AsyncSession) -> list[str]:
    result = await db.execute(select(User.id).order_by(User.id))
    return list(result.scalars().all())


class InsightEngine:
    """Runs every rule bound to an event, each as an isolated invocation.

    A rule gets its own session; a failure in one rule is logged and does not
    stop the others. Nothing is retried here: repeated delivery of the same
    event is harmless because every write is idempotent.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock | None = None,
        notifier: PushNotifier | None = None,
        rules: tuple[Rule, ...] = RULES,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock or Clock.system()
        self.notifier = notifier or PushNotifier(session_factory)
        self.rules = rules

    async def dispatch(self, event: TriggerEvent) -> list[RuleReport]:
        bound = rules_for(event.event_type, self.rules)
        if not bound:
            logger.debug("No rules bound to %s", event.event_type.value)
        return [await self.run_rule(rule, event) for rule in bound]

    async def run_rule(self, rule: Rule, event: TriggerEvent) -> RuleReport:
        report = RuleReport(rule=rule.name, owner_id=event.owner_id)

        missing = event.missing_fields(rule.required)
        if missing:
            report.skipped = f"missing fields: {', '.join(missing)}"
            logger.info("%s: skipped event for owner %s (%s)", rule.name, event.owner_id, report.skipped)
            return report

        try:
            async with self.session_factory() as db:
                report.decisions = await rule.evaluate(db, event, self.clock)
                for decision in report.decisions:
                    await self._apply(db, rule, event.owner_id, decision, report)
        except Exception:  # noqa: BLE001
            report.failed = True
            logger.exception(
                "%s: evaluation failed for owner %s (event=%s, record=%s)",
                rule.name,
                event.owner_id,
                event.event_type.value,
                event.record_id,
            )
        return report

    async def _apply(
        self,
        db: AsyncSession,
        rule: Rule,
        owner_id: str,
        decision: Decision,
        report: RuleReport,
    ) -> None:
        if isinstance(decision, NoAction):
            logger.debug("%s: no action for owner %s (%s)", rule.name, owner_id, decision.reason)
            return

        if isinstance(decision, Retract):
            removed = await services.retract(db, owner_id=owner_id, selector=decision.selector)
            report.retracted += removed
            if removed:
                logger.info("%s: retracted %d insight(s) for owner %s", rule.name, removed, owner_id)
            return

        if isinstance(decision, Emit):
            outcome = await services.try_emit(
                db, owner_id=owner_id, draft=decision.draft, created_at=self.clock.now()
            )
            if not isinstance(outcome, Created):
                report.deduplicated += 1
                logger.debug("%s: duplicate %s for owner %s", rule.name, outcome.fingerprint, owner_id)
                return

            report.created += 1
            insight = outcome.insight
            logger.info("%s: created %s %r for owner %s", rule.name, insight.kind, insight.title, owner_id)
            delivered = await self.notifier.notify(
                owner_id,
                insight.title,
                insight.body,
                {"type": insight.kind, "category": insight.category, "insight_id": insight.id},
            )
            report.notified += int(delivered)

    async def run_monthly_budget_check(self) -> list[RuleReport]:
        """Scheduled tick: evaluate the monthly rules for every user."""
        async with self.session_factory() as db:
            owner_ids = await list_owner_ids(db)

        reports: list[RuleReport] = []
        for owner_id in owner_ids:
            reports.extend(await self.dispatch(TriggerEvent(EventType.MONTHLY_TICK, owner_id)))

        failed = sum(1 for report in reports if report.failed)
        created = sum(report.created for report in reports)
        logger.info(
            "Monthly budget check finished: %d owner(s), %d alert(s), %d failure(s)",
            len(owner_ids),
            created,
            failed,
        )
        return reports
