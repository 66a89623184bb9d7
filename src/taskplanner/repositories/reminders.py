"""Repository for reminders."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Reminder, ReminderType, Task, User
from .base import BaseRepository


class ReminderRepository(BaseRepository[Reminder]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Reminder)

    async def get_for_owner(self, reminder_id: int, owner_id: int) -> Reminder | None:
        return await self._first(
            select(Reminder)
            .join(Task, Task.id == Reminder.task_id)
            .where(Reminder.id == reminder_id, Task.owner_id == owner_id)
        )

    async def list_for_task(self, task_id: int) -> list[Reminder]:
        return await self._all(select(Reminder).where(Reminder.task_id == task_id).order_by(Reminder.time))

    async def list_upcoming(self, owner_id: int, *, now: datetime, limit: int) -> list[tuple[Reminder, Task]]:
        """Unsent reminders at or after ``now`` with their tasks, soonest first."""
        result = await self.session.execute(
            select(Reminder, Task)
            .join(Task, Task.id == Reminder.task_id)
            .where(Task.owner_id == owner_id, Reminder.sent.is_(False), Reminder.time >= now)
            .order_by(Reminder.time)
            .limit(limit)
        )
        return [(reminder, task) for reminder, task in result.all()]

    async def list_due(self, *, since: datetime, until: datetime) -> list[tuple[Reminder, Task, User]]:
        """Unsent reminders for every owner with ``since <= time <= until``."""
        result = await self.session.execute(
            select(Reminder, Task, User)
            .join(Task, Task.id == Reminder.task_id)
            .join(User, User.id == Task.owner_id)
            .where(Reminder.sent.is_(False), Reminder.time >= since, Reminder.time <= until)
            .order_by(Reminder.time)
        )
        return [(reminder, task, user) for reminder, task, user in result.all()]

    async def list_pending_notifications(self, owner_id: int, *, now: datetime) -> list[tuple[Reminder, Task]]:
        """Push reminders whose time has come and the browser has not acknowledged."""
        result = await self.session.execute(
            select(Reminder, Task)
            .join(Task, Task.id == Reminder.task_id)
            .where(
                Task.owner_id == owner_id,
                Reminder.type == ReminderType.PUSH,
                Reminder.delivered_at.is_(None),
                Reminder.time <= now,
            )
            .order_by(Reminder.time)
        )
        return [(reminder, task) for reminder, task in result.all()]
