from __future__ import annotations

import re
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.models import ReminderType, User, utcnow
from taskplanner.services import ProjectService, ReminderService, TagService, TaskService

pytestmark = pytest.mark.asyncio

CSRF_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')
USER_PASSWORD = "correct-horse"


async def _csrf_token(client: AsyncClient, path: str) -> str:
    response = await client.get(path)
    assert response.status_code == 200, response.text
    match = CSRF_PATTERN.search(response.text)
    assert match is not None
    return match.group(1)


async def test_login_form_signs_in(client: AsyncClient, user: User) -> None:
    token = await _csrf_token(client, "/auth/login")

    response = await client.post(
        "/auth/login",
        data={"username": "alice", "password": USER_PASSWORD, "csrf_token": token},
    )

    assert response.status_code == 303
    assert response.headers["location"].endswith("/app")

    inbox = await client.get("/app")
    assert inbox.status_code == 200
    assert "Welcome back, alice!" in inbox.text


async def test_login_form_rejects_missing_csrf(client: AsyncClient, user: User) -> None:
    response = await client.post("/auth/login", data={"username": "alice", "password": USER_PASSWORD})

    assert response.status_code == 400
    assert "session" not in response.cookies


async def test_login_form_reports_bad_password(client: AsyncClient, user: User) -> None:
    token = await _csrf_token(client, "/auth/login")

    response = await client.post(
        "/auth/login",
        data={"username": "alice", "password": "wrong-password", "csrf_token": token},
    )

    assert response.status_code == 400
    assert "Invalid username or password." in response.text


async def test_signed_in_pages_render(signed_in: AsyncClient, session: AsyncSession, user: User) -> None:
    project = await ProjectService(session).create_project(user.id, name="Home")
    tag = await TagService(session).create_tag(user.id, name="errands")
    task = await TaskService(session).create_task(
        owner_id=user.id,
        title="Buy milk",
        project_id=project.id,
        tag_ids=[tag.id],
    )

    for path in (
        "/app",
        "/app/today",
        "/app/upcoming",
        "/app/completed",
        "/app/search?q=milk",
        f"/app/tasks/{task.id}",
        "/app/projects",
        f"/app/projects/{project.id}",
        "/app/tags",
        f"/app/tags/{tag.id}",
        "/app/profile",
    ):
        response = await signed_in.get(path)
        assert response.status_code == 200, path
        assert "text/html" in response.headers["content-type"]

    detail = await signed_in.get(f"/app/tasks/{task.id}")
    assert "Buy milk" in detail.text


async def test_task_form_creates_and_toggles(signed_in: AsyncClient, session: AsyncSession, user: User) -> None:
    token = await _csrf_token(signed_in, "/app")

    created = await signed_in.post(
        "/app/tasks",
        data={"title": "Water plants", "priority": "high", "csrf_token": token},
    )
    assert created.status_code == 303

    [task] = await TaskService(session).list_tasks_for_owner(user.id)
    assert task.title == "Water plants"

    toggled = await signed_in.post(f"/app/tasks/{task.id}/toggle", data={"csrf_token": token})
    assert toggled.status_code == 303

    api_view = await signed_in.get(f"/api/tasks/{task.id}")
    assert api_view.json()["status"] == "done"


async def test_home_page_depends_on_session(client: AsyncClient, user: User) -> None:
    anonymous = await client.get("/")
    assert anonymous.status_code == 200

    await client.post("/api/auth/login", json={"username": "alice", "password": USER_PASSWORD})
    signed_in = await client.get("/")
    assert signed_in.status_code == 303
    assert signed_in.headers["location"].endswith("/app")


async def test_edit_form_with_unknown_tag_changes_nothing(
    signed_in: AsyncClient, session: AsyncSession, user: User
) -> None:
    tag = await TagService(session).create_tag(user.id, name="errands")
    task = await TaskService(session).create_task(owner_id=user.id, title="Buy milk", tag_ids=[tag.id])
    task_id, tag_id = task.id, tag.id
    token = await _csrf_token(signed_in, f"/app/tasks/{task_id}")

    response = await signed_in.post(
        f"/app/tasks/{task_id}/edit",
        data={"title": "Buy oat milk", "tag_ids": ["9999"], "csrf_token": token},
    )

    assert response.status_code == 303
    assert response.headers["location"].endswith(f"/app/tasks/{task_id}")
    detail = await signed_in.get(f"/app/tasks/{task_id}")
    assert "Tag not found." in detail.text

    payload = (await signed_in.get(f"/api/tasks/{task_id}")).json()
    assert payload["title"] == "Buy milk"
    assert [item["id"] for item in payload["tags"]] == [tag_id]


async def test_edit_form_replaces_tags(signed_in: AsyncClient, session: AsyncSession, user: User) -> None:
    errands = await TagService(session).create_tag(user.id, name="errands")
    home = await TagService(session).create_tag(user.id, name="home")
    task = await TaskService(session).create_task(owner_id=user.id, title="Buy milk", tag_ids=[errands.id])
    task_id, home_id = task.id, home.id
    token = await _csrf_token(signed_in, f"/app/tasks/{task_id}")

    response = await signed_in.post(
        f"/app/tasks/{task_id}/edit",
        data={"title": "Buy oat milk", "tag_ids": [str(home_id)], "csrf_token": token},
    )

    assert response.status_code == 303
    payload = (await signed_in.get(f"/api/tasks/{task_id}")).json()
    assert payload["title"] == "Buy oat milk"
    assert [item["id"] for item in payload["tags"]] == [home_id]


async def test_deleting_missing_reminder_redirects_with_message(signed_in: AsyncClient, user: User) -> None:
    token = await _csrf_token(signed_in, "/app")

    response = await signed_in.post("/app/reminders/9999/delete", data={"csrf_token": token})

    assert response.status_code == 303
    assert response.headers["location"].endswith("/app")
    inbox = await signed_in.get("/app")
    assert "Reminder not found." in inbox.text


async def test_reminder_and_subtask_forms_delete(signed_in: AsyncClient, session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Pack")
    reminder = await ReminderService(session).create_reminder(
        task.id, user.id, type=ReminderType.PUSH, time=utcnow() + timedelta(hours=1)
    )
    task_id, reminder_id = task.id, reminder.id
    token = await _csrf_token(signed_in, f"/app/tasks/{task_id}")

    removed = await signed_in.post(f"/app/reminders/{reminder_id}/delete", data={"csrf_token": token})
    assert removed.status_code == 303
    assert removed.headers["location"].endswith(f"/app/tasks/{task_id}")
    assert (await signed_in.get(f"/api/tasks/{task_id}/reminders")).json() == []

    missing = await signed_in.post("/app/subtasks/9999/delete", data={"csrf_token": token})
    assert missing.status_code == 303
    assert "Subtask not found." in (await signed_in.get("/app")).text
