"""Subtask schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .task import TaskRead


class SubtaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    parent_id: int | None = None


class SubtaskUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class SubtaskReorder(BaseModel):
    """New sibling order, as a list of subtask ids."""

    subtask_ids: list[int] = Field(min_length=1)


class SubtaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    parent_id: int | None = None
    title: str
    completed: bool
    position: int


class SubtaskToggleResult(BaseModel):
    """Toggled subtask plus the parent task when the cascade completed it."""

    subtask: SubtaskRead
    task_completed: bool = False
    task: TaskRead | None = None


__all__ = ["SubtaskCreate", "SubtaskRead", "SubtaskReorder", "SubtaskToggleResult", "SubtaskUpdate"]
