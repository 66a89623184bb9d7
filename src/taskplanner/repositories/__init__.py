"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .auth import PasswordResetTokenRepository, UserSessionRepository
from .dependencies import DependencyRepository
from .projects import ProjectRepository
from .recurrence import RecurrenceRepository
from .reminders import ReminderRepository
from .subtasks import SubtaskRepository
from .tags import TagRepository
from .tasks import TaskRepository, TaskSearchCriteria
from .users import UserRepository

__all__ = [
    "DependencyRepository",
    "PasswordResetTokenRepository",
    "ProjectRepository",
    "RecurrenceRepository",
    "ReminderRepository",
    "SubtaskRepository",
    "TagRepository",
    "TaskRepository",
    "TaskSearchCriteria",
    "UserRepository",
    "UserSessionRepository",
]
