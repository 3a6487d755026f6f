"""Aggregation helpers over financial records.

Everything the insight rules know about a user's history comes from here:
windowed record lists, sums, averages and calendar-month totals. Month
boundaries are computed in the reporting timezone and converted to the
naive-UTC storage convention before querying.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import as_utc, to_storage
from spendsense.domain.records.models import (
    RECORD_TYPE_EXPENSE,
    RECORD_TYPE_INCOME,
    FinancialRecord,
)

ZERO = Decimal("0")
CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class MonthRange:
    key: str
    first_day: date
    start: datetime
    end: datetime

    @property
    def storage_start(self) -> datetime:
        return to_storage(self.start)

    @property
    def storage_end(self) -> datetime:
        return to_storage(self.end)


@dataclass(frozen=True, slots=True)
class MonthTotals:
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def _month_start(year: int, month: int) -> date:
    return date(year, month, 1)


def _next_month(value: date) -> date:
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)


def _previous_month(value: date) -> date:
    if value.month == 1:
        return date(value.year - 1, 12, 1)
    return date(value.year, value.month - 1, 1)


def _local_midnight(value: date, tz: ZoneInfo) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=tz)


def month_range(moment: datetime, tz: ZoneInfo, offset: int = 0) -> MonthRange:
    """Return the calendar month containing ``moment`` shifted by ``offset`` months."""
    local = moment.astimezone(tz)
    first_day = _month_start(local.year, local.month)
    step = _next_month if offset > 0 else _previous_month
    for _ in range(abs(offset)):
        first_day = step(first_day)

    return MonthRange(
        key=first_day.strftime("%Y-%m"),
        first_day=first_day,
        start=_local_midnight(first_day, tz),
        end=_local_midnight(_next_month(first_day), tz),
    )


def trailing_start(now: datetime, days: int) -> datetime:
    """Return the instant ``days`` whole days before ``now``, measured in UTC."""
    return as_utc(now) - timedelta(days=days)


def sum_amounts(records: Iterable[FinancialRecord]) -> Decimal:
    return sum((Decimal(str(record.amount)) for record in records), ZERO)


def average(records: Sequence[FinancialRecord]) -> Optional[Decimal]:
    """Mean amount, or ``None`` for an empty sequence."""
    if not records:
        return None
    return sum_amounts(records) / len(records)


async def window_filter(
    db: AsyncSession,
    *,
    owner_id: str,
    record_type: str,
    category: str | None = None,
    from_time: datetime | None = None,
    to_time: datetime | None = None,
    exclude_id: int | None = None,
) -> list[FinancialRecord]:
    """Records of one owner and type, optionally limited by category and time.

    ``from_time`` is inclusive and ``to_time`` exclusive.
    """
    stmt = select(FinancialRecord).where(
        FinancialRecord.owner_id == owner_id,
        FinancialRecord.record_type == record_type,
    )
    if category is not None:
        stmt = stmt.where(FinancialRecord.category == category)
    if from_time is not None:
        stmt = stmt.where(FinancialRecord.occurred_at >= to_storage(from_time))
    if to_time is not None:
        stmt = stmt.where(FinancialRecord.occurred_at < to_storage(to_time))
    if exclude_id is not None:
        stmt = stmt.where(FinancialRecord.id != exclude_id)

    result = await db.execute(stmt.order_by(FinancialRecord.occurred_at.desc()))
    return list(result.scalars().all())


async def latest_records(
    db: AsyncSession,
    *,
    owner_id: str,
    record_type: str,
    limit: int,
    exclude_id: int | None = None,
) -> list[FinancialRecord]:
    """Newest ``limit`` records, skipping ``exclude_id`` if it is among them."""
    stmt = (
        select(FinancialRecord)
        .where(
            FinancialRecord.owner_id == owner_id,
            FinancialRecord.record_type == record_type,
        )
        .order_by(FinancialRecord.occurred_at.desc(), FinancialRecord.id.desc())
        .limit(limit + 1)
    )
    result = await db.execute(stmt)
    records = [record for record in result.scalars().all() if record.id != exclude_id]
    return records[:limit]


async def count_records(
    db: AsyncSession,
    *,
    owner_id: str,
    record_type: str,
    category: str | None = None,
    exclude_id: int | None = None,
    limit: int | None = None,
) -> int:
    """Count matching records; with ``limit`` the count stops there."""
    stmt = select(FinancialRecord.id).where(
        FinancialRecord.owner_id == owner_id,
        FinancialRecord.record_type == record_type,
    )
    if category is not None:
        stmt = stmt.where(FinancialRecord.category == category)
    if exclude_id is not None:
        stmt = stmt.where(FinancialRecord.id != exclude_id)
    if limit is not None:
        stmt = stmt.limit(limit)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    return int(total or 0)


async def month_totals(db: AsyncSession, *, owner_id: str, month: MonthRange) -> MonthTotals:
    """Income and expense sums for ``owner_id`` inside ``month``."""
    stmt = (
        select(
            FinancialRecord.record_type,
            func.coalesce(func.sum(FinancialRecord.amount), 0).label("total"),
        )
        .where(FinancialRecord.owner_id == owner_id)
        .where(FinancialRecord.occurred_at >= month.storage_start)
        .where(FinancialRecord.occurred_at < month.storage_end)
        .group_by(FinancialRecord.record_type)
    )
    result = await db.execute(stmt)
    totals = {
        row.record_type: Decimal(str(row.total or 0)).quantize(CENTS) for row in result
    }
    return MonthTotals(
        income=totals.get(RECORD_TYPE_INCOME, ZERO),
        expense=totals.get(RECORD_TYPE_EXPENSE, ZERO),
    )
