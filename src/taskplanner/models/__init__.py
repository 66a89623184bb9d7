"""Domain models for the task planner."""

from __future__ import annotations

from .auth import PasswordResetToken, UserSession
from .common import TimestampMixin, as_utc, ensure_aware, utcnow
from .dependency import TaskDependency
from .project import DEFAULT_PROJECT_COLOR, Project, ProjectBase
from .recurrence import Recurrence, RecurrenceFrequency
from .reminder import Reminder, ReminderType
from .subtask import Subtask
from .tag import DEFAULT_TAG_COLOR, Tag, TaskTagLink
from .task import PRIORITY_RANK, Task, TaskBase, TaskPriority, TaskStatus
from .user import User, UserBase

__all__ = [
    "DEFAULT_PROJECT_COLOR",
    "DEFAULT_TAG_COLOR",
    "PRIORITY_RANK",
    "PasswordResetToken",
    "Project",
    "ProjectBase",
    "Recurrence",
    "RecurrenceFrequency",
    "Reminder",
    "ReminderType",
    "Subtask",
    "Tag",
    "Task",
    "TaskBase",
    "TaskDependency",
    "TaskPriority",
    "TaskStatus",
    "TaskTagLink",
    "TimestampMixin",
    "User",
    "UserBase",
    "UserSession",
    "as_utc",
    "ensure_aware",
    "utcnow",
]
