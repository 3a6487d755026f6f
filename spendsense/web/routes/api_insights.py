"""Read endpoints for system-generated insights."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.database import get_db
from spendsense.core.dependencies import get_owner
from spendsense.domain.insights import services
from spendsense.domain.insights.models import Insight, InsightKind
from spendsense.domain.insights.schemas import InsightOut, LatestInsightOut, UnreadCountOut
from spendsense.domain.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_error(action: str, owner: User) -> HTTPException:
    logger.exception("Failed to %s for owner %s", action, owner.id)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("", response_model=list[InsightOut])
async def list_insights(
    kind: Optional[InsightKind] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=200),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> list[Insight]:
    """Return the owner's insights newest first, optionally filtered by kind."""
    try:
        return list(await services.list_insights(db, owner_id=owner.id, kind=kind, limit=limit))
    except SQLAlchemyError as exc:
        raise _store_error("fetch insights", owner) from exc


@router.get("/latest", response_model=LatestInsightOut)
async def latest_insight(
    kind: InsightKind = Query(InsightKind.ALERT),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Optional[Insight]]:
    """Return the most recent insight of ``kind`` or ``null``."""
    try:
        insight = await services.latest_insight(db, owner_id=owner.id, kind=kind)
    except SQLAlchemyError as exc:
        raise _store_error("fetch latest insight", owner) from exc
    return {"insight": insight}


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(
    kind: Optional[InsightKind] = Query(None),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> dict[str, int]:
    try:
        unread = await services.count_unread(db, owner_id=owner.id, kind=kind)
    except SQLAlchemyError as exc:
        raise _store_error("count unread insights", owner) from exc
    return {"unread": unread}


@router.post("/{insight_id}/acknowledge", response_model=InsightOut)
async def acknowledge_insight(
    insight_id: int,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> Insight:
    """Mark an insight as read."""
    insight = await services.acknowledge_insight(db, owner_id=owner.id, insight_id=insight_id)
    if insight is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Insight not found")
    return insight
