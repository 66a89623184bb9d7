"""Reminder and notification schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..models import ReminderType
from .task import TaskSummary
from .types import UTCDatetime


class ReminderCreate(BaseModel):
    type: ReminderType
    time: UTCDatetime


class ReminderUpdate(BaseModel):
    type: ReminderType | None = None
    time: UTCDatetime | None = None


class ReminderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    type: ReminderType
    time: UTCDatetime
    sent: bool
    delivered_at: UTCDatetime | None = None


class ReminderWithTask(ReminderRead):
    task: TaskSummary


class NotificationPayload(BaseModel):
    """Options for the browser Notification API."""

    title: str
    body: str
    tag: str
    data: dict[str, Any] = Field(default_factory=dict)


class ReminderDispatchResult(BaseModel):
    """Outcome of one reminder scan."""

    checked_at: UTCDatetime
    total: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)
    sent_ids: list[int] = Field(default_factory=list)


__all__ = [
    "NotificationPayload",
    "ReminderCreate",
    "ReminderDispatchResult",
    "ReminderRead",
    "ReminderUpdate",
    "ReminderWithTask",
]
