"""User-facing Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import UTCDatetime


class UserPublic(BaseModel):
    """Public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    created_at: UTCDatetime


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    avatar_url: str | None = Field(default=None, max_length=2048)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


__all__ = ["PasswordChange", "ProfileUpdate", "UserPublic"]
