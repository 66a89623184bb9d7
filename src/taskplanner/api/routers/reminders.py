"""Routes handling reminders, the dispatch check and browser notifications."""

from __future__ import annotations

import secrets

from fastapi import APIRouter, Request, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency, SettingsDependency
from ...errors import AuthenticationError
from ...models import Reminder, Task
from ...schemas import (
    NotificationPayload,
    ReminderCreate,
    ReminderDispatchResult,
    ReminderRead,
    ReminderUpdate,
    ReminderWithTask,
    TaskSummary,
)
from ...services import ReminderService

router = APIRouter(tags=["reminders"])


def _with_task(reminder: Reminder, task: Task) -> ReminderWithTask:
    return ReminderWithTask(
        **ReminderRead.model_validate(reminder).model_dump(),
        task=TaskSummary.model_validate(task),
    )


@router.get("/tasks/{task_id}/reminders", response_model=list[ReminderRead], summary="List a task's reminders")
async def list_reminders(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[ReminderRead]:
    reminders = await ReminderService(session).list_for_task(task_id, current_user.id)
    return [ReminderRead.model_validate(item) for item in reminders]


@router.post(
    "/tasks/{task_id}/reminders",
    response_model=ReminderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a reminder",
)
async def create_reminder(
    task_id: int,
    payload: ReminderCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ReminderRead:
    reminder = await ReminderService(session).create_reminder(
        task_id,
        current_user.id,
        type=payload.type,
        time=payload.time,
    )
    return ReminderRead.model_validate(reminder)


@router.get("/reminders/upcoming", response_model=list[ReminderWithTask], summary="Next unsent reminders")
async def list_upcoming(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> list[ReminderWithTask]:
    rows = await ReminderService(session, settings).list_upcoming(current_user.id)
    return [_with_task(reminder, task) for reminder, task in rows]


@router.get(
    "/reminders/notifications",
    response_model=list[NotificationPayload],
    summary="Push reminders the browser has yet to show",
)
async def list_notifications(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> list[NotificationPayload]:
    return await ReminderService(session, settings).pending_notifications(current_user.id)


@router.post(
    "/reminders/check",
    response_model=ReminderDispatchResult,
    summary="Dispatch due reminders inline",
)
async def check_reminders(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> ReminderDispatchResult:
    """Entry point for cron callers; guarded by the cron secret when configured."""
    if settings.cron_secret:
        authorization = request.headers.get("authorization", "")
        if not secrets.compare_digest(authorization, f"Bearer {settings.cron_secret}"):
            raise AuthenticationError("Unauthorized.", code="unauthorized")
    return await ReminderService(session, settings).dispatch_due()


@router.post("/reminders/{reminder_id}/ack", response_model=ReminderRead, summary="Record browser delivery")
async def acknowledge_reminder(
    reminder_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ReminderRead:
    reminder = await ReminderService(session).acknowledge(reminder_id, current_user.id)
    return ReminderRead.model_validate(reminder)


@router.patch("/reminders/{reminder_id}", response_model=ReminderRead, summary="Update a reminder")
async def update_reminder(
    reminder_id: int,
    payload: ReminderUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ReminderRead:
    reminder = await ReminderService(session).update_reminder(
        reminder_id,
        current_user.id,
        type=payload.type,
        time=payload.time,
    )
    return ReminderRead.model_validate(reminder)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a reminder")
async def delete_reminder(
    reminder_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await ReminderService(session).delete_reminder(reminder_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
