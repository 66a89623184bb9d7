"""Dependency edge schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .task import TaskSummary
from .types import UTCDatetime


class DependencyCreate(BaseModel):
    depends_on_task_id: int = Field(ge=1)


class DependencyRead(BaseModel):
    """An outgoing edge with the task it points at."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    depends_on_task_id: int
    created_at: UTCDatetime
    depends_on: TaskSummary | None = None


class DependentRead(BaseModel):
    """An incoming edge with the task that waits on this one."""

    id: int
    task_id: int
    depends_on_task_id: int
    created_at: UTCDatetime
    task: TaskSummary


class CompletionCheck(BaseModel):
    can_complete: bool
    blocking_tasks: list[TaskSummary] = Field(default_factory=list)


__all__ = ["CompletionCheck", "DependencyCreate", "DependencyRead", "DependentRead"]
