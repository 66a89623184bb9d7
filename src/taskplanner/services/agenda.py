"""Calendar-day views over a user's tasks.

All functions are pure: they take already loaded tasks plus the current
instant and the zone in which "today" is evaluated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import TypeVar

from ..models import Task, TaskStatus, ensure_aware

T = TypeVar("T", bound=Task)

UPCOMING_WINDOW_DAYS = 7
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def local_day(value: datetime | None, zone: tzinfo) -> date | None:
    aware = ensure_aware(value)
    if aware is None:
        return None
    return aware.astimezone(zone).date()


def _open(tasks: Iterable[T]) -> list[T]:
    return [task for task in tasks if task.status != TaskStatus.DONE]


def _by_due(tasks: Iterable[T]) -> list[T]:
    return sorted(tasks, key=lambda task: (ensure_aware(task.due_date), task.position, task.id or 0))


def due_today(tasks: Iterable[T], now: datetime, zone: tzinfo) -> list[T]:
    today = local_day(now, zone)
    return _by_due(task for task in _open(tasks) if local_day(task.due_date, zone) == today)


def overdue(tasks: Iterable[T], now: datetime, zone: tzinfo) -> list[T]:
    """Open tasks whose due day is strictly before today."""
    today = local_day(now, zone)
    return _by_due(
        task
        for task in _open(tasks)
        if task.due_date is not None and local_day(task.due_date, zone) < today
    )


def without_due_date(tasks: Iterable[T]) -> list[T]:
    return [task for task in _open(tasks) if task.due_date is None]


def completed_on_day(tasks: Iterable[T], now: datetime, zone: tzinfo) -> int:
    today = local_day(now, zone)
    return sum(
        1
        for task in tasks
        if task.status == TaskStatus.DONE and local_day(task.completed_at, zone) == today
    )


def upcoming(tasks: Iterable[T], now: datetime, zone: tzinfo) -> dict[date, list[T]]:
    """Open tasks due after today, grouped by local day.

    The next seven days always appear, possibly empty; later days only
    appear when something is due.
    """
    today = local_day(now, zone)
    groups: dict[date, list[T]] = {today + timedelta(days=offset): [] for offset in range(1, UPCOMING_WINDOW_DAYS + 1)}
    for task in _by_due(task for task in _open(tasks) if task.due_date is not None):
        day = local_day(task.due_date, zone)
        if day is None or day <= today:
            continue
        groups.setdefault(day, []).append(task)
    return dict(sorted(groups.items()))


def day_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    if day - today < timedelta(days=UPCOMING_WINDOW_DAYS):
        return day.strftime("%A")
    return day.strftime("%a, %b %d")


@dataclass(slots=True)
class CompletedBuckets:
    today: list[Task] = field(default_factory=list)
    yesterday: list[Task] = field(default_factory=list)
    this_week: list[Task] = field(default_factory=list)
    older: list[Task] = field(default_factory=list)


def group_completed(tasks: Sequence[Task], now: datetime, zone: tzinfo) -> CompletedBuckets:
    """Bucket done tasks by completion day; the week starts on Sunday."""
    today = local_day(now, zone)
    yesterday = today - timedelta(days=1)
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    buckets = CompletedBuckets()
    done = [task for task in tasks if task.status == TaskStatus.DONE]
    done.sort(key=lambda task: ensure_aware(task.completed_at) or _EPOCH, reverse=True)
    for task in done:
        day = local_day(task.completed_at, zone)
        if day is None:
            buckets.older.append(task)
        elif day == today:
            buckets.today.append(task)
        elif day == yesterday:
            buckets.yesterday.append(task)
        elif day >= week_start:
            buckets.this_week.append(task)
        else:
            buckets.older.append(task)
    return buckets


def inbox(tasks: Iterable[T]) -> list[T]:
    """Open tasks by position, newest first within a position."""
    open_tasks = _open(tasks)
    open_tasks.sort(key=lambda task: ensure_aware(task.created_at), reverse=True)
    open_tasks.sort(key=lambda task: task.position)
    return open_tasks


__all__ = [
    "CompletedBuckets",
    "UPCOMING_WINDOW_DAYS",
    "completed_on_day",
    "day_label",
    "due_today",
    "group_completed",
    "inbox",
    "local_day",
    "overdue",
    "upcoming",
    "without_due_date",
]
