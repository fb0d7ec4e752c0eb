"""Pydantic schemas for the users feature."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """User row as returned by the user store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    email: str
    name: str
    is_admin: bool = False
    created_at: datetime


class UserUpdate(BaseModel):
    """Profile edit made by the account holder."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
