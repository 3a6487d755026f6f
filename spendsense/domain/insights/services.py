"""Storage gateway for insights.

Writes follow two idempotent primitives: insert-if-absent keyed by
``(owner_id, fingerprint)`` and delete-by-selector. Neither runs inside a
cross-row transaction; the unique constraint catches the rare concurrent
duplicate insert and it is reported as deduplicated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence, Union

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import to_storage, utcnow_naive

from .fingerprint import fingerprint
from .models import Insight, InsightKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InsightDraft:
    kind: InsightKind
    title: str
    body: str
    category: str
    rationale: str
    date_bucket: date

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.title, self.body, self.date_bucket)


@dataclass(frozen=True, slots=True)
class InsightSelector:
    """Field-equality match used for retraction and existence checks."""

    kind: InsightKind
    titles: tuple[str, ...]
    created_from: datetime | None = None
    created_to: datetime | None = None


@dataclass(frozen=True, slots=True)
class Created:
    insight: Insight


@dataclass(frozen=True, slots=True)
class Deduplicated:
    fingerprint: str


EmitResult = Union[Created, Deduplicated]


def _selector_clauses(owner_id: str, selector: InsightSelector) -> list:
    clauses = [
        Insight.owner_id == owner_id,
        Insight.kind == selector.kind.value,
        Insight.title.in_(selector.titles),
    ]
    if selector.created_from is not None:
        clauses.append(Insight.created_at >= to_storage(selector.created_from))
    if selector.created_to is not None:
        clauses.append(Insight.created_at < to_storage(selector.created_to))
    return clauses


async def _get_by_fingerprint(db: AsyncSession, *, owner_id: str, key: str) -> Insight | None:
    result = await db.execute(
        select(Insight).where(Insight.owner_id == owner_id, Insight.fingerprint == key).limit(1)
    )
    return result.scalar_one_or_none()


async def try_emit(
    db: AsyncSession,
    *,
    owner_id: str,
    draft: InsightDraft,
    created_at: datetime | None = None,
) -> EmitResult:
    """Insert the drafted insight unless one with the same fingerprint exists."""
    key = draft.fingerprint
    if await _get_by_fingerprint(db, owner_id=owner_id, key=key) is not None:
        return Deduplicated(key)

    insight = Insight(
        owner_id=owner_id,
        kind=draft.kind.value,
        title=draft.title,
        body=draft.body,
        category=draft.category,
        rationale=draft.rationale,
        fingerprint=key,
        created_at=to_storage(created_at) if created_at is not None else utcnow_naive(),
        acknowledged=False,
    )
    db.add(insight)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # A concurrent invocation stored the same fingerprint first.
        logger.info("Insight %s for owner %s already stored concurrently", key, owner_id)
        return Deduplicated(key)

    await db.refresh(insight)
    return Created(insight)


async def retract(db: AsyncSession, *, owner_id: str, selector: InsightSelector) -> int:
    """Delete every insight matching ``selector``; absent rows are not an error."""
    result = await db.execute(
        delete(Insight)
        .where(*_selector_clauses(owner_id, selector))
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def exists(db: AsyncSession, *, owner_id: str, selector: InsightSelector) -> bool:
    result = await db.execute(
        select(Insight.id).where(*_selector_clauses(owner_id, selector)).limit(1)
    )
    return result.first() is not None


async def delete_alerts_older_than(db: AsyncSession, *, owner_id: str, cutoff: datetime) -> int:
    """Remove Alert insights created strictly before ``cutoff``."""
    result = await db.execute(
        delete(Insight)
        .where(
            Insight.owner_id == owner_id,
            Insight.kind == InsightKind.ALERT.value,
            Insight.created_at < to_storage(cutoff),
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def list_insights(
    db: AsyncSession,
    *,
    owner_id: str,
    kind: InsightKind | None = None,
    limit: int | None = None,
) -> Sequence[Insight]:
    """Return an owner's insights newest first."""
    stmt = select(Insight).where(Insight.owner_id == owner_id)
    if kind is not None:
        stmt = stmt.where(Insight.kind == kind.value)
    stmt = stmt.order_by(Insight.created_at.desc(), Insight.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()


async def latest_insight(
    db: AsyncSession, *, owner_id: str, kind: InsightKind | None = None
) -> Insight | None:
    insights = await list_insights(db, owner_id=owner_id, kind=kind, limit=1)
    return insights[0] if insights else None


async def count_unread(db: AsyncSession, *, owner_id: str, kind: InsightKind | None = None) -> int:
    stmt = (
        select(func.count())
        .select_from(Insight)
        .where(Insight.owner_id == owner_id, Insight.acknowledged.is_(False))
    )
    if kind is not None:
        stmt = stmt.where(Insight.kind == kind.value)
    return int(await db.scalar(stmt) or 0)


async def acknowledge_insight(db: AsyncSession, *, owner_id: str, insight_id: int) -> Insight | None:
    """Mark an insight as read. Returns ``None`` when it does not exist."""
    result = await db.execute(
        select(Insight).where(Insight.owner_id == owner_id, Insight.id == insight_id)
    )
    insight = result.scalar_one_or_none()
    if insight is None:
        return None
    if not insight.acknowledged:
        insight.acknowledged = True
        await db.commit()
        await db.refresh(insight)
    return insight
