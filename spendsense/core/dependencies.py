"""Shared FastAPI dependencies."""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Path, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import Clock
from spendsense.core.database import AsyncSessionLocal, get_db
from spendsense.domain.insights.engine import InsightEngine
from spendsense.domain.users.models import User


async def get_owner(
    owner_id: str = Path(..., min_length=1, max_length=128),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the user named in the path or raise 404."""
    result = await db.execute(select(User).where(User.id == owner_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return user


@lru_cache(maxsize=1)
def get_insight_engine() -> InsightEngine:
    """Process-wide engine bound to the application session factory."""
    return InsightEngine(AsyncSessionLocal, clock=Clock.system())
