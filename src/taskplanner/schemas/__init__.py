"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    ResetPasswordRequest,
    SessionToken,
    SignupRequest,
)
from .dependency import CompletionCheck, DependencyCreate, DependencyRead, DependentRead
from .jobs import JobEnqueueResponse
from .project import ProjectCreate, ProjectRead, ProjectUpdate
from .recurrence import RecurrenceRead, RecurrenceUpdate, RecurrenceWrite
from .reminder import (
    NotificationPayload,
    ReminderCreate,
    ReminderDispatchResult,
    ReminderRead,
    ReminderUpdate,
    ReminderWithTask,
)
from .subtask import SubtaskCreate, SubtaskRead, SubtaskReorder, SubtaskToggleResult, SubtaskUpdate
from .system import ErrorResponse, HealthCheckResponse, MessageResponse, RootResponse
from .tag import TagCreate, TagRead, TagUpdate, TaskTagsReplace
from .task import (
    AgendaDay,
    CompletedGroups,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskReorder,
    TaskSearchParams,
    TaskSearchResponse,
    TaskStatistics,
    TaskSummary,
    TaskUpdate,
    TodayAgenda,
    UpcomingAgenda,
)
from .user import PasswordChange, ProfileUpdate, UserPublic

__all__ = [
    "AgendaDay",
    "AuthResponse",
    "CompletedGroups",
    "CompletionCheck",
    "DependencyCreate",
    "DependencyRead",
    "DependentRead",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "HealthCheckResponse",
    "JobEnqueueResponse",
    "LoginRequest",
    "MessageResponse",
    "NotificationPayload",
    "PasswordChange",
    "ProfileUpdate",
    "ProjectCreate",
    "ProjectRead",
    "ProjectUpdate",
    "RecurrenceRead",
    "RecurrenceUpdate",
    "RecurrenceWrite",
    "ReminderCreate",
    "ReminderDispatchResult",
    "ReminderRead",
    "ReminderUpdate",
    "ReminderWithTask",
    "ResetPasswordRequest",
    "RootResponse",
    "SessionToken",
    "SignupRequest",
    "SubtaskCreate",
    "SubtaskRead",
    "SubtaskReorder",
    "SubtaskToggleResult",
    "SubtaskUpdate",
    "TagCreate",
    "TagRead",
    "TagUpdate",
    "TaskCreate",
    "TaskListResponse",
    "TaskRead",
    "TaskReorder",
    "TaskSearchParams",
    "TaskSearchResponse",
    "TaskStatistics",
    "TaskSummary",
    "TaskTagsReplace",
    "TaskUpdate",
    "TodayAgenda",
    "UpcomingAgenda",
    "UserPublic",
]
