from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.errors import ConflictError, ValidationError
from taskplanner.models import RecurrenceFrequency, User
from taskplanner.services import RecurrenceService, TaskService, format_recurrence_description


@pytest.mark.parametrize(
    ("frequency", "interval", "days", "end", "expected"),
    [
        (RecurrenceFrequency.DAILY, 1, None, None, "Repeats daily"),
        (RecurrenceFrequency.DAILY, 3, None, None, "Every 3 days"),
        (RecurrenceFrequency.WEEKLY, 1, [6, 0], None, "Repeats weekly on Sun, Sat"),
        (RecurrenceFrequency.WEEKLY, 2, [1, 3], None, "Every 2 weeks on Mon, Wed"),
        (
            RecurrenceFrequency.MONTHLY,
            1,
            None,
            datetime(2024, 12, 31, tzinfo=timezone.utc),
            "Repeats monthly until 2024-12-31",
        ),
        (RecurrenceFrequency.CUSTOM, 4, None, None, "Repeats every 4 custom"),
        ("yearly", 1, None, None, "Repeats"),
    ],
)
def test_format_recurrence_description(frequency, interval, days, end, expected) -> None:
    assert format_recurrence_description(frequency, interval, days, end) == expected


def test_days_of_week_only_describe_weekly_rules() -> None:
    assert format_recurrence_description(RecurrenceFrequency.DAILY, 1, [1, 2]) == "Repeats daily"


@pytest.mark.asyncio
async def test_one_rule_per_task(session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Water plants")
    service = RecurrenceService(session)

    rule = await service.create(task.id, user.id, frequency=RecurrenceFrequency.WEEKLY, days_of_week=[3, 1, 3])
    assert rule.days_of_week == "1,3"
    assert rule.weekdays == [1, 3]

    with pytest.raises(ConflictError):
        await service.create(task.id, user.id, frequency=RecurrenceFrequency.DAILY)

    updated = await service.update(task.id, user.id, interval=2, days_of_week=None)
    assert updated.interval == 2
    assert updated.days_of_week is None

    with pytest.raises(ValidationError):
        await service.update(task.id, user.id, days_of_week=[7])

    await service.delete(task.id, user.id)
    assert await service.get_for_task(task.id, user.id) is None


@pytest.mark.asyncio
async def test_recurrence_api_includes_description(signed_in: AsyncClient) -> None:
    task = (await signed_in.post("/api/tasks/", json={"title": "Pay rent"})).json()

    created = await signed_in.post(
        f"/api/tasks/{task['id']}/recurrence",
        json={"frequency": "monthly", "interval": 1},
    )
    assert created.status_code == 201, created.text
    assert created.json()["description"] == "Repeats monthly"

    patched = await signed_in.patch(f"/api/tasks/{task['id']}/recurrence", json={"interval": 2})
    assert patched.json()["description"] == "Every 2 months"

    bad = await signed_in.post(
        f"/api/tasks/{task['id']}/recurrence",
        json={"frequency": "daily", "interval": 0},
    )
    assert bad.status_code == 422
