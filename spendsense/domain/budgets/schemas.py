"""Pydantic schemas for monthly budgets."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class BudgetUpsert(BaseModel):
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    model_config = ConfigDict(extra="forbid")


class BudgetOut(BaseModel):
    month_key: str
    total_amount: Decimal
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
