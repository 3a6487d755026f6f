"""Pydantic schemas for user profiles."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpsert(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = Field(default=None, max_length=254)
    device_token: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class DeviceTokenUpdate(BaseModel):
    device_token: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ProfileOut(BaseModel):
    id: str
    name: Optional[str]
    email: Optional[str]
    has_device_token: bool

    @classmethod
    def from_user(cls, user) -> "ProfileOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            has_device_token=bool(user.device_token),
        )
