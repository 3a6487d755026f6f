"""User profile endpoints used to register push targets."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spendsense.core.database import get_db
from spendsense.core.dependencies import get_owner
from spendsense.domain.users.models import User
from spendsense.domain.users.schemas import DeviceTokenUpdate, ProfileOut, ProfileUpsert

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/{owner_id}", response_model=ProfileOut)
async def upsert_profile(
    payload: ProfileUpsert,
    owner_id: str = Path(..., min_length=1, max_length=128),
    db: AsyncSession = Depends(get_db),
) -> ProfileOut:
    """Create the profile for ``owner_id`` or update the provided fields."""
    result = await db.execute(select(User).where(User.id == owner_id))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(id=owner_id)
        db.add(user)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("IntegrityError while saving profile %s", owner_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        ) from None

    await db.refresh(user)
    return ProfileOut.from_user(user)


@router.put("/{owner_id}/device-token", response_model=ProfileOut)
async def update_device_token(
    payload: DeviceTokenUpdate,
    owner: User = Depends(get_owner),
    db: AsyncSession = Depends(get_db),
) -> ProfileOut:
    """Store the device's current push token (``null`` unregisters it)."""
    owner.device_token = payload.device_token or None
    await db.commit()
    await db.refresh(owner)
    return ProfileOut.from_user(owner)
