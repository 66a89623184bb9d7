"""Project schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..models import DEFAULT_PROJECT_COLOR
from .types import UTCDatetime


class ProjectCreate(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Home", "color": "#10b981", "emoji": "🏠"}}
    )

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    color: str = Field(default=DEFAULT_PROJECT_COLOR, max_length=32)
    emoji: str | None = Field(default=None, max_length=16)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(default=None, max_length=32)
    emoji: str | None = Field(default=None, max_length=16)
    position: int | None = Field(default=None, ge=0)


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    color: str
    emoji: str | None = None
    position: int
    created_at: UTCDatetime
    updated_at: UTCDatetime
    open_tasks: int = 0


__all__ = ["ProjectCreate", "ProjectRead", "ProjectUpdate"]
