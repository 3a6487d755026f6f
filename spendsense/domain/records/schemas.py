"""Pydantic schemas for income and expense records."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordCreate(BaseModel):
    """Schema for creating an income or expense record."""

    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(default=None, max_length=80)
    description: Optional[str] = None
    occurred_at: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ExpenseCreate(RecordCreate):
    """Expenses must name a category."""

    category: str = Field(min_length=1, max_length=80)


class RecordOut(BaseModel):
    """Schema for returning record data."""

    id: int
    record_type: Literal["income", "expense"]
    amount: Decimal
    category: Optional[str]
    description: Optional[str]
    occurred_at: datetime
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
