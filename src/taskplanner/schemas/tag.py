"""Tag schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..models import DEFAULT_TAG_COLOR


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    color: str = Field(default=DEFAULT_TAG_COLOR, max_length=32)


class TagUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    color: str | None = Field(default=None, max_length=32)


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class TaskTagsReplace(BaseModel):
    """Replace a task's tag set in one call."""

    tag_ids: list[int] = Field(default_factory=list)


__all__ = ["TagCreate", "TagRead", "TagUpdate", "TaskTagsReplace"]
