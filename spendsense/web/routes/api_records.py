"""Income and expense endpoints.

Creating or deleting a record is the event source for the insight engine:
the record is committed first, then the matching event is dispatched as a
background task so rule evaluation never delays or fails the request.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.clock import to_storage, utcnow_naive
from spendsense.core.database import get_db
from spendsense.core.dependencies import get_insight_engine, get_owner
from spendsense.domain.insights.engine import InsightEngine
from spendsense.domain.insights.events import EventType, RecordPayload, TriggerEvent
from spendsense.domain.records.models import (
    RECORD_TYPE_EXPENSE,
    RECORD_TYPE_INCOME,
    FinancialRecord,
)
from spendsense.domain.records.schemas import ExpenseCreate, RecordCreate, RecordOut
from spendsense.domain.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


def _record_event(record: FinancialRecord, *, deleted: bool = False) -> TriggerEvent:
    return TriggerEvent(
        event_type=EventType.for_record(record.record_type, deleted=deleted),
        owner_id=record.owner_id,
        record_id=record.id,
        payload=RecordPayload.from_record(record),
    )


async def _list_records(db: AsyncSession, owner: User, record_type: str, limit: int) -> list[FinancialRecord]:
    result = await db.execute(
        select(FinancialRecord)
        .where(FinancialRecord.owner_id == owner.id, FinancialRecord.record_type == record_type)
        .order_by(FinancialRecord.occurred_at.desc(), FinancialRecord.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def _create_record(
    db: AsyncSession,
    owner: User,
    record_type: str,
    payload: RecordCreate,
) -> FinancialRecord:
    record = FinancialRecord(
        owner_id=owner.id,
        record_type=record_type,
        amount=payload.amount,
        category=payload.category,
        description=payload.description,
        occurred_at=to_storage(payload.occurred_at) if payload.occurred_at else utcnow_naive(),
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def _delete_record(
    db: AsyncSession,
    owner: User,
    record_type: str,
    record_id: int,
) -> FinancialRecord:
    result = await db.execute(
        select(FinancialRecord).where(
            FinancialRecord.id == record_id,
            FinancialRecord.owner_id == owner.id,
            FinancialRecord.record_type == record_type,
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")

    await db.delete(record)
    await db.commit()
    return record


@router.get("/expenses", response_model=list[RecordOut])
async def list_expenses(
    limit: int = Query(100, ge=1, le=500),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> list[FinancialRecord]:
    """Return the owner's expenses, newest first."""
    return await _list_records(db, owner, RECORD_TYPE_EXPENSE, limit)


@router.post("/expenses", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: ExpenseCreate,
    background_tasks: BackgroundTasks,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
    engine: InsightEngine = Depends(get_insight_engine),
) -> FinancialRecord:
    """Record an expense and evaluate the expense rules for it."""
    record = await _create_record(db, owner, RECORD_TYPE_EXPENSE, payload)
    background_tasks.add_task(engine.dispatch, _record_event(record))
    return record


@router.delete("/expenses/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    record_id: int,
    background_tasks: BackgroundTasks,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
    engine: InsightEngine = Depends(get_insight_engine),
) -> Response:
    """Delete an expense and re-check this month's balance insights."""
    record = await _delete_record(db, owner, RECORD_TYPE_EXPENSE, record_id)
    background_tasks.add_task(engine.dispatch, _record_event(record, deleted=True))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/income", response_model=list[RecordOut])
async def list_income(
    limit: int = Query(100, ge=1, le=500),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> list[FinancialRecord]:
    """Return the owner's income entries, newest first."""
    return await _list_records(db, owner, RECORD_TYPE_INCOME, limit)


@router.post("/income", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
async def create_income(
    payload: RecordCreate,
    background_tasks: BackgroundTasks,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
    engine: InsightEngine = Depends(get_insight_engine),
) -> FinancialRecord:
    """Record income and evaluate the income rules for it."""
    record = await _create_record(db, owner, RECORD_TYPE_INCOME, payload)
    background_tasks.add_task(engine.dispatch, _record_event(record))
    return record


@router.delete("/income/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_income(
    record_id: int,
    background_tasks: BackgroundTasks,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
    engine: InsightEngine = Depends(get_insight_engine),
) -> Response:
    """Delete an income entry and re-check this month's balance insights."""
    record = await _delete_record(db, owner, RECORD_TYPE_INCOME, record_id)
    background_tasks.add_task(engine.dispatch, _record_event(record, deleted=True))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
