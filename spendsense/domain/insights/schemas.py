"""Pydantic schemas for the insight read endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class InsightOut(BaseModel):
    id: int
    kind: Literal["Alert", "Advice"]
    title: str
    body: str
    category: str
    rationale: str
    fingerprint: str
    created_at: datetime
    acknowledged: bool

    model_config = ConfigDict(from_attributes=True)


class LatestInsightOut(BaseModel):
    insight: Optional[InsightOut]


class UnreadCountOut(BaseModel):
    unread: int
