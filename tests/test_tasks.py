from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.errors import NotFoundError
from taskplanner.models import TaskPriority, TaskStatus, User
from taskplanner.repositories import TaskSearchCriteria
from taskplanner.services import ProjectService, TagService, TaskService, describe_filters

pytestmark = pytest.mark.asyncio

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


async def test_task_crud_over_the_api(signed_in: AsyncClient) -> None:
    created = await signed_in.post(
        "/api/tasks/",
        json={"title": "Renew passport", "priority": "high", "due_date": "2024-05-01T09:00:00Z"},
    )
    assert created.status_code == 201, created.text
    task = created.json()
    assert task["status"] == "todo"
    assert task["priority"] == "high"
    assert task["completed_at"] is None

    toggled = await signed_in.post(f"/api/tasks/{task['id']}/toggle")
    assert toggled.json()["status"] == "done"
    assert toggled.json()["completed_at"] is not None

    reopened = await signed_in.patch(f"/api/tasks/{task['id']}", json={"status": "in_progress", "due_date": None})
    assert reopened.status_code == 200
    assert reopened.json()["status"] == "in_progress"
    assert reopened.json()["completed_at"] is None
    assert reopened.json()["due_date"] is None

    listing = await signed_in.get("/api/tasks/")
    assert listing.json()["total"] == 1

    deleted = await signed_in.delete(f"/api/tasks/{task['id']}")
    assert deleted.status_code == 204
    missing = await signed_in.get(f"/api/tasks/{task['id']}")
    assert missing.status_code == 404


async def test_empty_update_is_rejected(signed_in: AsyncClient) -> None:
    created = await signed_in.post("/api/tasks/", json={"title": "Something"})

    response = await signed_in.patch(f"/api/tasks/{created.json()['id']}", json={})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


async def test_tasks_of_other_users_are_hidden(
    signed_in: AsyncClient,
    session: AsyncSession,
    other_user: User,
) -> None:
    theirs = await TaskService(session).create_task(owner_id=other_user.id, title="Private")

    assert (await signed_in.get(f"/api/tasks/{theirs.id}")).status_code == 404
    assert (await signed_in.post(f"/api/tasks/{theirs.id}/toggle")).status_code == 404
    assert (await signed_in.get("/api/tasks/")).json()["total"] == 0


async def test_reorder_sets_positions(session: AsyncSession, user: User) -> None:
    service = TaskService(session)
    first = await service.create_task(owner_id=user.id, title="First")
    second = await service.create_task(owner_id=user.id, title="Second")
    assert (first.position, second.position) == (0, 1)

    await service.reorder_tasks(user.id, [second.id, first.id])

    inbox = await service.inbox(user.id)
    assert [item.title for item in inbox] == ["Second", "First"]


async def test_search_combines_filters(session: AsyncSession, user: User) -> None:
    tasks = TaskService(session)
    tags = TagService(session)
    work = await tags.create_tag(user.id, name="work")
    urgent = await tags.create_tag(user.id, name="urgent")

    report = await tasks.create_task(
        owner_id=user.id,
        title="Quarterly report",
        priority=TaskPriority.HIGH,
        tag_ids=[work.id, urgent.id],
        due_date=NOW,
    )
    await tasks.create_task(
        owner_id=user.id,
        title="Expenses",
        description="Attach the report receipts",
        priority=TaskPriority.LOW,
        tag_ids=[work.id],
        due_date=NOW + timedelta(days=3),
    )
    await tasks.create_task(owner_id=user.id, title="Groceries")

    text = await tasks.search_tasks(user.id, TaskSearchCriteria(query="REPORT", sort_by="title", sort_order="asc"))
    assert [task.title for task in text] == ["Expenses", "Quarterly report"]

    any_tag = await tasks.search_tasks(user.id, TaskSearchCriteria(tag_ids=[work.id, urgent.id]))
    assert len(any_tag) == 2

    all_tags = await tasks.search_tasks(
        user.id,
        TaskSearchCriteria(tag_ids=[work.id, urgent.id], match_all_tags=True),
    )
    assert [task.id for task in all_tags] == [report.id]

    by_priority = await tasks.search_tasks(user.id, TaskSearchCriteria(sort_by="priority", sort_order="desc"))
    assert by_priority[0].id == report.id

    dated = await tasks.search_tasks(
        user.id,
        TaskSearchCriteria(date_from=NOW + timedelta(days=1), date_to=NOW + timedelta(days=5)),
    )
    assert [task.title for task in dated] == ["Expenses"]


async def test_describe_filters() -> None:
    assert describe_filters(TaskSearchCriteria()) == "All tasks"
    criteria = TaskSearchCriteria(
        query="tax",
        status=TaskStatus.IN_PROGRESS,
        priority=TaskPriority.HIGH,
        tag_ids=[1, 2],
    )
    assert describe_filters(criteria) == '"tax", in progress, high priority, 2 tags'


async def test_search_api_returns_summary(signed_in: AsyncClient) -> None:
    await signed_in.post("/api/tasks/", json={"title": "Call plumber", "priority": "high"})
    await signed_in.post("/api/tasks/", json={"title": "Call mom"})

    response = await signed_in.get("/api/tasks/search", params={"q": "call", "priority": "high"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 1
    assert payload["items"][0]["title"] == "Call plumber"
    assert payload["summary"] == '"call", high priority'


async def test_deleting_a_project_keeps_its_tasks(session: AsyncSession, user: User) -> None:
    projects = ProjectService(session)
    tasks = TaskService(session)
    home = await projects.create_project(user.id, name="Home")
    task = await tasks.create_task(owner_id=user.id, title="Fix sink", project_id=home.id)

    await projects.delete_project(home.id, user.id)

    kept = await tasks.require_task(task.id, user.id)
    assert kept.project_id is None


async def test_agenda_views_use_the_given_instant(session: AsyncSession, user: User) -> None:
    tasks = TaskService(session)
    await tasks.create_task(owner_id=user.id, title="Due now", due_date=NOW)
    await tasks.create_task(owner_id=user.id, title="Late", due_date=NOW - timedelta(days=2))
    await tasks.create_task(owner_id=user.id, title="Someday")
    await tasks.create_task(owner_id=user.id, title="Next week", due_date=NOW + timedelta(days=3))
    await tasks.create_task(owner_id=user.id, title="Far off", due_date=NOW + timedelta(days=30))

    today = await tasks.today_agenda(user.id, now=NOW)
    assert [item.title for item in today.today] == ["Due now"]
    assert [item.title for item in today.overdue] == ["Late"]
    assert [item.title for item in today.no_due_date] == ["Someday"]

    upcoming = await tasks.upcoming_agenda(user.id, now=NOW)
    assert len(upcoming.days) == 8
    assert upcoming.days[0].label == "Tomorrow"
    assert [item.title for day in upcoming.days for item in day.tasks] == ["Next week", "Far off"]

    stats = await tasks.get_task_statistics(user.id, now=NOW)
    assert stats.total == 5
    assert stats.overdue == 1
    assert stats.due_today == 1
    assert stats.by_status == {"todo": 5, "in_progress": 0, "done": 0}


async def test_agenda_endpoints_respond(signed_in: AsyncClient) -> None:
    await signed_in.post("/api/tasks/", json={"title": "Undated"})

    today = await signed_in.get("/api/tasks/today")
    upcoming = await signed_in.get("/api/tasks/upcoming")
    completed = await signed_in.get("/api/tasks/completed")
    statistics = await signed_in.get("/api/tasks/statistics")

    assert today.status_code == 200
    assert [item["title"] for item in today.json()["no_due_date"]] == ["Undated"]
    assert len(upcoming.json()["days"]) == 7
    assert completed.json() == {"today": [], "yesterday": [], "this_week": [], "older": []}
    assert statistics.json()["total"] == 1


async def test_update_with_unknown_tag_is_all_or_nothing(session: AsyncSession, user: User) -> None:
    tags = TagService(session)
    errands = await tags.create_tag(user.id, name="errands")
    home = await tags.create_tag(user.id, name="home")
    service = TaskService(session)
    task = await service.create_task(owner_id=user.id, title="Buy milk", tag_ids=[errands.id])
    task_id, errands_id, home_id = task.id, errands.id, home.id

    with pytest.raises(NotFoundError):
        await service.update_task(task_id, user.id, title="Buy oat milk", tag_ids=[home_id, 9999])

    unchanged = await service.require_task(task_id, user.id)
    assert unchanged.title == "Buy milk"
    assert [tag.id for tag in await tags.list_task_tags(task_id, user.id)] == [errands_id]

    updated = await service.update_task(task_id, user.id, title="Buy oat milk", tag_ids=[home_id])
    assert updated.title == "Buy oat milk"
    assert [tag.id for tag in await tags.list_task_tags(task_id, user.id)] == [home_id]


async def test_patch_replaces_tags(signed_in: AsyncClient) -> None:
    tag = (await signed_in.post("/api/tags", json={"name": "errands"})).json()
    created = (await signed_in.post("/api/tasks/", json={"title": "Buy milk"})).json()

    missing = await signed_in.patch(f"/api/tasks/{created['id']}", json={"title": "Buy bread", "tag_ids": [9999]})
    assert missing.status_code == 404
    assert (await signed_in.get(f"/api/tasks/{created['id']}")).json()["title"] == "Buy milk"

    response = await signed_in.patch(f"/api/tasks/{created['id']}", json={"tag_ids": [tag["id"]]})
    assert response.status_code == 200, response.text
    assert [item["name"] for item in response.json()["tags"]] == ["errands"]
