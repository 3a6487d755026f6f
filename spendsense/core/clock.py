"""Injected time source for the insight engine.

Rules and scheduled jobs never call ``datetime.now()`` themselves; they read
the current moment and the fixed reporting timezone from a ``Clock`` so that
tests can pin both.

Timestamps are persisted as naive UTC (the convention of every model in
this project); ``to_storage``/``from_storage`` convert at the boundary.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from spendsense.core.config import settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Clock:
    tz: ZoneInfo
    source: Callable[[], datetime] = field(default=_utcnow)

    @classmethod
    def system(cls, tz_name: str | None = None) -> "Clock":
        return cls(ZoneInfo(tz_name or settings.INSIGHTS_TIMEZONE))

    @classmethod
    def fixed(cls, moment: datetime, tz_name: str | None = None) -> "Clock":
        """Return a clock frozen at ``moment`` (naive values are read as UTC)."""
        pinned = as_utc(moment)
        return cls(ZoneInfo(tz_name or settings.INSIGHTS_TIMEZONE), lambda: pinned)

    def now(self) -> datetime:
        """Current moment, aware, in the reporting timezone."""
        return as_utc(self.source()).astimezone(self.tz)

    def local(self, moment: datetime) -> datetime:
        return as_utc(moment).astimezone(self.tz)

    def local_date(self, moment: datetime) -> date:
        return self.local(moment).date()


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_storage(moment: datetime) -> datetime:
    return as_utc(moment).replace(tzinfo=None)


def from_storage(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc)


def utcnow_naive() -> datetime:
    return to_storage(_utcnow())
