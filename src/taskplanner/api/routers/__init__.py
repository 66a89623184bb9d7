"""Router registrations for the JSON API."""

from __future__ import annotations

from fastapi import APIRouter

from .auth import router as auth_router
from .dependencies import router as dependencies_router
from .health import router as health_router
from .jobs import router as jobs_router
from .projects import router as projects_router
from .recurrence import router as recurrence_router
from .reminders import router as reminders_router
from .subtasks import router as subtasks_router
from .tags import router as tags_router
from .tasks import router as tasks_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(tasks_router)
api_router.include_router(projects_router)
api_router.include_router(tags_router)
api_router.include_router(subtasks_router)
api_router.include_router(dependencies_router)
api_router.include_router(recurrence_router)
api_router.include_router(reminders_router)
api_router.include_router(jobs_router)

__all__ = ["api_router", "health_router"]
