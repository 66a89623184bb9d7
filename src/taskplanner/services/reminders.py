"""Reminder CRUD, the dispatch scan and browser notification delivery."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings, get_settings
from ..errors import NotFoundError
from ..models import Reminder, ReminderType, Task, as_utc, ensure_aware, utcnow
from ..repositories import ReminderRepository, TaskRepository
from ..schemas import NotificationPayload, ReminderDispatchResult
from .mailer import EmailService
from .notifications import build_task_reminder_notification

logger = logging.getLogger("taskplanner.services.reminders")


class ReminderService:
    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        email_service: EmailService | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._repository = ReminderRepository(session)
        self._tasks = TaskRepository(session)
        self._email_service = email_service or EmailService(settings=self._settings)

    async def _require_task(self, task_id: int, owner_id: int) -> Task:
        task = await self._tasks.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found.", details={"task_id": task_id})
        return task

    async def require_reminder(self, reminder_id: int, owner_id: int) -> Reminder:
        reminder = await self._repository.get_for_owner(reminder_id, owner_id)
        if reminder is None:
            raise NotFoundError("Reminder not found.", details={"reminder_id": reminder_id})
        return reminder

    async def list_for_task(self, task_id: int, owner_id: int) -> list[Reminder]:
        await self._require_task(task_id, owner_id)
        return await self._repository.list_for_task(task_id)

    async def create_reminder(
        self,
        task_id: int,
        owner_id: int,
        *,
        type: ReminderType,
        time: datetime,
    ) -> Reminder:
        """New reminders always start unsent."""
        await self._require_task(task_id, owner_id)
        reminder = Reminder(task_id=task_id, type=type, time=as_utc(time), sent=False)
        await self._repository.add(reminder)
        await self._session.commit()
        await self._repository.refresh(reminder)
        return reminder

    async def update_reminder(
        self,
        reminder_id: int,
        owner_id: int,
        *,
        type: ReminderType | None = None,
        time: datetime | None = None,
    ) -> Reminder:
        """Change type or time; a new time re-arms the reminder."""
        reminder = await self.require_reminder(reminder_id, owner_id)
        if type is not None:
            reminder.type = type
        if time is not None:
            reminder.time = as_utc(time)
            reminder.sent = False
            reminder.delivered_at = None
        await self._session.commit()
        await self._repository.refresh(reminder)
        return reminder

    async def delete_reminder(self, reminder_id: int, owner_id: int) -> None:
        reminder = await self.require_reminder(reminder_id, owner_id)
        await self._repository.delete(reminder)
        await self._session.commit()

    async def list_upcoming(self, owner_id: int, *, now: datetime | None = None) -> list[tuple[Reminder, Task]]:
        return await self._repository.list_upcoming(
            owner_id,
            now=as_utc(now) or utcnow(),
            limit=self._settings.upcoming_reminder_limit,
        )

    async def dispatch_due(self, *, now: datetime | None = None) -> ReminderDispatchResult:
        """Send reminders due within the lookahead window and mark them sent.

        Email reminders go through the email service; push reminders are only
        marked, the browser picks them up from the notification feed. Each
        reminder is committed on its own, so a crash after sending can repeat
        a send but never loses one.
        """
        current = as_utc(now) or utcnow()
        until = current + timedelta(minutes=self._settings.reminder_lookahead_minutes)
        due = await self._repository.list_due(since=current, until=until)
        result = ReminderDispatchResult(checked_at=current, total=len(due))

        for reminder, task, user in due:
            sent = False
            if reminder.type == ReminderType.EMAIL:
                if not user.email:
                    result.failed += 1
                    result.errors.append(f"Reminder {reminder.id}: User has no email address")
                    continue
                due_date = ensure_aware(task.due_date)
                sent = self._email_service.send_reminder(
                    to=user.email,
                    task_title=task.title,
                    due_date=due_date.isoformat() if due_date is not None else None,
                    task_url=f"{self._settings.base_url.rstrip('/')}/app/tasks/{task.id}",
                )
            elif reminder.type == ReminderType.PUSH:
                sent = True

            if not sent:
                result.failed += 1
                result.errors.append(f"Reminder {reminder.id}: Failed to send")
                continue

            reminder.sent = True
            await self._session.commit()
            result.sent += 1
            result.sent_ids.append(reminder.id)

        logger.info(
            "Reminder check completed",
            extra={"total": result.total, "sent": result.sent, "failed": result.failed},
        )
        return result

    async def pending_notifications(
        self,
        owner_id: int,
        *,
        now: datetime | None = None,
    ) -> list[NotificationPayload]:
        """Push reminders that are due and not yet acknowledged by the browser."""
        rows = await self._repository.list_pending_notifications(owner_id, now=as_utc(now) or utcnow())
        return [
            build_task_reminder_notification(reminder, task, base_url=self._settings.base_url)
            for reminder, task in rows
        ]

    async def acknowledge(self, reminder_id: int, owner_id: int) -> Reminder:
        """Record browser delivery; acknowledging twice keeps the first time."""
        reminder = await self.require_reminder(reminder_id, owner_id)
        if reminder.delivered_at is None:
            reminder.delivered_at = utcnow()
            await self._session.commit()
            await self._repository.refresh(reminder)
        return reminder


__all__ = ["ReminderService"]
