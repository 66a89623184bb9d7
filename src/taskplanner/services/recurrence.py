"""Recurrence rules and their human-readable description."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Recurrence, RecurrenceFrequency, as_utc
from ..repositories import RecurrenceRepository, TaskRepository
from ..schemas import RecurrenceRead

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_UNITS = {
    RecurrenceFrequency.DAILY: ("daily", "days"),
    RecurrenceFrequency.WEEKLY: ("weekly", "weeks"),
    RecurrenceFrequency.MONTHLY: ("monthly", "months"),
}


def format_recurrence_description(
    frequency: RecurrenceFrequency | str,
    interval: int = 1,
    days_of_week: Sequence[int] | None = None,
    end_date: datetime | None = None,
) -> str:
    """Describe a rule, e.g. ``Every 2 weeks on Mon, Wed until 2024-05-01``."""
    try:
        frequency = RecurrenceFrequency(frequency)
    except ValueError:
        description = "Repeats"
    else:
        if frequency is RecurrenceFrequency.CUSTOM:
            description = f"Repeats every {interval} custom"
        else:
            adverb, plural = _UNITS[frequency]
            description = f"Repeats {adverb}" if interval == 1 else f"Every {interval} {plural}"
            if frequency is RecurrenceFrequency.WEEKLY and days_of_week:
                names = ", ".join(WEEKDAY_NAMES[day] for day in sorted(days_of_week) if 0 <= day <= 6)
                description = f"{description} on {names}"
    if end_date is not None:
        description = f"{description} until {end_date.date().isoformat()}"
    return description


def _encode_weekdays(days: Sequence[int] | None) -> str | None:
    if not days:
        return None
    if any(day < 0 or day > 6 for day in days):
        raise ValidationError("Days of week must be between 0 and 6.", details={"field": "days_of_week"})
    return ",".join(str(day) for day in sorted(set(days)))


def to_read(rule: Recurrence) -> RecurrenceRead:
    return RecurrenceRead(
        id=rule.id,
        task_id=rule.task_id,
        frequency=rule.frequency,
        interval=rule.interval,
        days_of_week=rule.weekdays,
        end_date=rule.end_date,
        description=format_recurrence_description(rule.frequency, rule.interval, rule.weekdays, rule.end_date),
    )


class RecurrenceService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = RecurrenceRepository(session)
        self._tasks = TaskRepository(session)

    async def _require_task(self, task_id: int, owner_id: int) -> None:
        if await self._tasks.get_for_owner(task_id, owner_id) is None:
            raise NotFoundError("Task not found.", details={"task_id": task_id})

    async def get_for_task(self, task_id: int, owner_id: int) -> Recurrence | None:
        await self._require_task(task_id, owner_id)
        return await self._repository.get_for_task(task_id)

    async def create(
        self,
        task_id: int,
        owner_id: int,
        *,
        frequency: RecurrenceFrequency,
        interval: int = 1,
        days_of_week: Sequence[int] | None = None,
        end_date: datetime | None = None,
    ) -> Recurrence:
        await self._require_task(task_id, owner_id)
        if await self._repository.get_for_task(task_id) is not None:
            raise ConflictError("Task already has a recurrence rule.", details={"task_id": task_id})
        if interval < 1:
            raise ValidationError("Interval must be at least 1.", details={"field": "interval"})
        rule = Recurrence(
            task_id=task_id,
            frequency=frequency,
            interval=interval,
            days_of_week=_encode_weekdays(days_of_week),
            end_date=as_utc(end_date),
        )
        await self._repository.add(rule)
        await self._session.commit()
        await self._repository.refresh(rule)
        return rule

    async def update(self, task_id: int, owner_id: int, **updates) -> Recurrence:
        await self._require_task(task_id, owner_id)
        rule = await self._repository.get_for_task(task_id)
        if rule is None:
            raise NotFoundError("Recurrence not found.", details={"task_id": task_id})
        if "frequency" in updates and updates["frequency"] is not None:
            rule.frequency = RecurrenceFrequency(updates["frequency"])
        if "interval" in updates and updates["interval"] is not None:
            if updates["interval"] < 1:
                raise ValidationError("Interval must be at least 1.", details={"field": "interval"})
            rule.interval = updates["interval"]
        if "days_of_week" in updates:
            rule.days_of_week = _encode_weekdays(updates["days_of_week"])
        if "end_date" in updates:
            rule.end_date = as_utc(updates["end_date"])
        await self._session.commit()
        await self._repository.refresh(rule)
        return rule

    async def delete(self, task_id: int, owner_id: int) -> None:
        await self._require_task(task_id, owner_id)
        rule = await self._repository.get_for_task(task_id)
        if rule is None:
            raise NotFoundError("Recurrence not found.", details={"task_id": task_id})
        await self._repository.delete(rule)
        await self._session.commit()


__all__ = ["RecurrenceService", "WEEKDAY_NAMES", "format_recurrence_description", "to_read"]
