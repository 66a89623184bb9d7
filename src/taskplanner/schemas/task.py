"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import TaskPriority, TaskStatus
from .tag import TagRead
from .types import UTCDatetime

TASK_READ_EXAMPLE = {
    "id": 1,
    "title": "Renew passport",
    "description": "Book an appointment at the consulate.",
    "priority": TaskPriority.HIGH.value,
    "status": TaskStatus.TODO.value,
    "project_id": 3,
    "due_date": "2024-05-01T09:00:00Z",
    "start_date": None,
    "completed_at": None,
    "position": 0,
    "created_at": "2024-04-01T12:00:00Z",
    "updated_at": "2024-04-02T08:30:00Z",
    "tags": [{"id": 7, "name": "errands", "color": "#6b7280"}],
}


class TaskCreate(BaseModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Renew passport",
                "priority": TaskPriority.HIGH.value,
                "due_date": "2024-05-01T09:00:00Z",
            }
        }
    )

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.TODO)
    project_id: int | None = Field(default=None)
    due_date: UTCDatetime | None = Field(default=None)
    start_date: UTCDatetime | None = Field(default=None)
    tag_ids: list[int] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Payload for partially updating an existing task.

    Explicit ``null`` clears ``project_id``, ``due_date`` and ``start_date``.
    ``tag_ids``, when given, replaces the task's tag set.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None)
    priority: TaskPriority | None = Field(default=None)
    status: TaskStatus | None = Field(default=None)
    project_id: int | None = Field(default=None)
    due_date: UTCDatetime | None = Field(default=None)
    start_date: UTCDatetime | None = Field(default=None)
    position: int | None = Field(default=None, ge=0)
    tag_ids: list[int] | None = Field(default=None)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        return self


class TaskRead(BaseModel):
    """Public representation of a task."""

    model_config = ConfigDict(from_attributes=True, json_schema_extra={"example": TASK_READ_EXAMPLE})

    id: int
    title: str
    description: str | None = None
    priority: TaskPriority
    status: TaskStatus
    project_id: int | None = None
    due_date: UTCDatetime | None = None
    start_date: UTCDatetime | None = None
    completed_at: UTCDatetime | None = None
    position: int = 0
    created_at: UTCDatetime
    updated_at: UTCDatetime
    tags: list[TagRead] = Field(default_factory=list)
    subtasks_completed: int = 0
    subtasks_total: int = 0


class TaskSummary(BaseModel):
    """Compact task reference used inside joined records."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: UTCDatetime | None = None


class TaskListResponse(BaseModel):
    """Paginated collection of tasks."""

    items: list[TaskRead]
    total: int
    limit: int
    offset: int


class TaskStatistics(BaseModel):
    """Aggregated statistics describing task distribution."""

    owner_id: int
    total: int = Field(ge=0)
    by_status: dict[str, int] = Field(default_factory=dict)
    overdue: int = Field(default=0, ge=0)
    due_today: int = Field(default=0, ge=0)
    completed_today: int = Field(default=0, ge=0)


class TaskReorder(BaseModel):
    task_ids: list[int] = Field(min_length=1)


class TaskSearchParams(BaseModel):
    """Search filters; every field is optional."""

    query: str | None = None
    project_id: int | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    tag_ids: list[int] = Field(default_factory=list)
    match_all_tags: bool = False
    date_from: UTCDatetime | None = None
    date_to: UTCDatetime | None = None
    sort_by: Literal["created_at", "due_date", "title", "priority"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class TaskSearchResponse(BaseModel):
    items: list[TaskRead]
    total: int
    summary: str


class AgendaDay(BaseModel):
    day: date
    label: str
    tasks: list[TaskRead] = Field(default_factory=list)


class TodayAgenda(BaseModel):
    today: list[TaskRead] = Field(default_factory=list)
    overdue: list[TaskRead] = Field(default_factory=list)
    no_due_date: list[TaskRead] = Field(default_factory=list)
    completed_today: int = 0


class UpcomingAgenda(BaseModel):
    days: list[AgendaDay] = Field(default_factory=list)


class CompletedGroups(BaseModel):
    today: list[TaskRead] = Field(default_factory=list)
    yesterday: list[TaskRead] = Field(default_factory=list)
    this_week: list[TaskRead] = Field(default_factory=list)
    older: list[TaskRead] = Field(default_factory=list)


__all__ = [
    "AgendaDay",
    "CompletedGroups",
    "TaskCreate",
    "TaskListResponse",
    "TaskRead",
    "TaskReorder",
    "TaskSearchParams",
    "TaskSearchResponse",
    "TaskStatistics",
    "TaskSummary",
    "TaskUpdate",
    "TodayAgenda",
    "UpcomingAgenda",
]
