"""Monthly budget endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.database import get_db
from spendsense.core.dependencies import get_owner
from spendsense.domain.budgets.models import Budget
from spendsense.domain.budgets.schemas import MONTH_KEY_PATTERN, BudgetOut, BudgetUpsert
from spendsense.domain.users.models import User

router = APIRouter()


async def _get_budget(db: AsyncSession, owner: User, month_key: str) -> Budget | None:
    result = await db.execute(
        select(Budget).where(Budget.owner_id == owner.id, Budget.month_key == month_key)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=list[BudgetOut])
async def list_budgets(
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> list[Budget]:
    result = await db.execute(
        select(Budget).where(Budget.owner_id == owner.id).order_by(Budget.month_key.desc())
    )
    return list(result.scalars().all())


@router.get("/{month_key}", response_model=BudgetOut)
async def get_budget(
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> Budget:
    budget = await _get_budget(db, owner, month_key)
    if not budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return budget


@router.put("/{month_key}", response_model=BudgetOut)
async def put_budget(
    payload: BudgetUpsert,
    month_key: str = Path(..., pattern=MONTH_KEY_PATTERN),
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> Budget:
    """Create or replace the budget for ``month_key``."""
    budget = await _get_budget(db, owner, month_key)
    if budget is None:
        budget = Budget(owner_id=owner.id, month_key=month_key, total_amount=payload.total_amount)
        db.add(budget)
    else:
        budget.total_amount = payload.total_amount

    await db.commit()
    await db.refresh(budget)
    return budget
