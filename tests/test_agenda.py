from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from taskplanner.models import Task, TaskStatus
from taskplanner.services import agenda

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def _task(title: str, *, due: datetime | None = None, done_at: datetime | None = None, position: int = 0) -> Task:
    return Task(
        owner_id=1,
        title=title,
        due_date=due,
        status=TaskStatus.DONE if done_at else TaskStatus.TODO,
        completed_at=done_at,
        position=position,
    )


def test_today_and_overdue_ignore_done_tasks() -> None:
    tasks = [
        _task("today", due=NOW + timedelta(hours=3)),
        _task("late", due=NOW - timedelta(days=1)),
        _task("late but done", due=NOW - timedelta(days=1), done_at=NOW),
        _task("undated"),
    ]

    assert [task.title for task in agenda.due_today(tasks, NOW, timezone.utc)] == ["today"]
    assert [task.title for task in agenda.overdue(tasks, NOW, timezone.utc)] == ["late"]
    assert [task.title for task in agenda.without_due_date(tasks)] == ["undated"]
    assert agenda.completed_on_day(tasks, NOW, timezone.utc) == 1


def test_calendar_day_follows_the_configured_zone() -> None:
    late_evening_utc = _task("late evening", due=datetime(2024, 5, 10, 23, 30, tzinfo=timezone.utc))
    tokyo = ZoneInfo("Asia/Tokyo")

    assert agenda.due_today([late_evening_utc], NOW, timezone.utc) == [late_evening_utc]
    assert agenda.due_today([late_evening_utc], NOW, tokyo) == []
    assert agenda.local_day(late_evening_utc.due_date, tokyo) == date(2024, 5, 11)


def test_upcoming_always_lists_the_next_week() -> None:
    groups = agenda.upcoming([_task("far", due=NOW + timedelta(days=20))], NOW, timezone.utc)

    days = list(groups)
    assert days[:7] == [date(2024, 5, 10) + timedelta(days=offset) for offset in range(1, 8)]
    assert days[-1] == date(2024, 5, 30)
    assert all(groups[day] == [] for day in days[:7])


def test_day_labels() -> None:
    today = date(2024, 5, 10)

    assert agenda.day_label(today, today) == "Today"
    assert agenda.day_label(today + timedelta(days=1), today) == "Tomorrow"
    assert agenda.day_label(today + timedelta(days=3), today) == "Monday"
    assert agenda.day_label(today + timedelta(days=10), today) == "Mon, May 20"


def test_completed_tasks_are_bucketed_newest_first() -> None:
    tasks = [
        _task("older", done_at=NOW - timedelta(days=30)),
        _task("this week", done_at=NOW - timedelta(days=4)),
        _task("yesterday", done_at=NOW - timedelta(days=1)),
        _task("today early", done_at=NOW - timedelta(hours=5)),
        _task("today late", done_at=NOW - timedelta(hours=1)),
    ]

    buckets = agenda.group_completed(tasks, NOW, timezone.utc)

    assert [task.title for task in buckets.today] == ["today late", "today early"]
    assert [task.title for task in buckets.yesterday] == ["yesterday"]
    assert [task.title for task in buckets.this_week] == ["this week"]
    assert [task.title for task in buckets.older] == ["older"]


@pytest.mark.parametrize(
    ("now", "done_at", "bucket"),
    [
        (datetime(2024, 5, 6, 9, tzinfo=timezone.utc), datetime(2024, 5, 3, 9, tzinfo=timezone.utc), "older"),
        (datetime(2024, 5, 8, 9, tzinfo=timezone.utc), datetime(2024, 5, 5, 9, tzinfo=timezone.utc), "this_week"),
        (datetime(2024, 5, 11, 9, tzinfo=timezone.utc), datetime(2024, 5, 4, 9, tzinfo=timezone.utc), "older"),
        (datetime(2024, 5, 12, 9, tzinfo=timezone.utc), datetime(2024, 5, 11, 9, tzinfo=timezone.utc), "yesterday"),
    ],
)
def test_completed_this_week_starts_on_sunday(now: datetime, done_at: datetime, bucket: str) -> None:
    buckets = agenda.group_completed([_task("done", done_at=done_at)], now, timezone.utc)

    assert [task.title for task in getattr(buckets, bucket)] == ["done"]


def test_inbox_orders_by_position() -> None:
    tasks = [_task("b", position=2), _task("a", position=1), _task("done", position=0, done_at=NOW)]

    assert [task.title for task in agenda.inbox(tasks)] == ["a", "b"]
