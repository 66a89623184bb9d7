"""Domain service layer package."""

from __future__ import annotations

from .auth import AuthService, IssuedSession
from .dependencies import CompletionGate, DependencyService
from .mailer import EmailMessage, EmailSender, EmailService, LoggingEmailSender
from .projects import ProjectService
from .recurrence import RecurrenceService, format_recurrence_description
from .reminders import ReminderService
from .subtasks import SubtaskService, SubtaskToggle
from .tags import TagService
from .tasks import TaskService, TaskStatisticsResult, describe_filters
from .users import UserService

__all__ = [
    "AuthService",
    "CompletionGate",
    "DependencyService",
    "EmailMessage",
    "EmailSender",
    "EmailService",
    "IssuedSession",
    "LoggingEmailSender",
    "ProjectService",
    "RecurrenceService",
    "ReminderService",
    "SubtaskService",
    "SubtaskToggle",
    "TagService",
    "TaskService",
    "TaskStatisticsResult",
    "UserService",
    "describe_filters",
]
