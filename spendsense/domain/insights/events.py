"""Trigger events consumed by the insight engine."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable

from spendsense.domain.records.models import RECORD_TYPE_EXPENSE, FinancialRecord


class EventType(str, Enum):
    EXPENSE_CREATED = "expense.created"
    EXPENSE_DELETED = "expense.deleted"
    INCOME_CREATED = "income.created"
    INCOME_DELETED = "income.deleted"
    MONTHLY_TICK = "schedule.monthly"

    @classmethod
    def for_record(cls, record_type: str, *, deleted: bool = False) -> "EventType":
        if record_type == RECORD_TYPE_EXPENSE:
            return cls.EXPENSE_DELETED if deleted else cls.EXPENSE_CREATED
        return cls.INCOME_DELETED if deleted else cls.INCOME_CREATED


@dataclass(frozen=True, slots=True)
class RecordPayload:
    amount: Decimal | None = None
    category: str | None = None
    occurred_at: datetime | None = None

    @classmethod
    def from_record(cls, record: FinancialRecord) -> "RecordPayload":
        return cls(
            amount=Decimal(str(record.amount)) if record.amount is not None else None,
            category=record.category,
            occurred_at=record.occurred_at,
        )


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    event_type: EventType
    owner_id: str
    record_id: int | None = None
    payload: RecordPayload | None = None

    def missing_fields(self, required: Iterable[str]) -> list[str]:
        """Names of required fields that are absent or unusable."""
        missing: list[str] = []
        for name in required:
            if name == "record_id":
                value = self.record_id
            else:
                value = getattr(self.payload, name, None) if self.payload is not None else None

            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
            elif name == "amount" and value <= 0:
                missing.append(name)
        return missing
