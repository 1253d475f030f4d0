"""Authentication-related schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.user import Role


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class IdentityRead(BaseModel):
    user_id: int
    display_name: str
    role: Role


class FlashMessages(BaseModel):
    success: str | None = None
    error: str | None = None
