from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _task(client: AsyncClient, title: str, **fields) -> dict:
    response = await client.post("/api/tasks/", json={"title": title, **fields})
    assert response.status_code == 201, response.text
    return response.json()


async def test_project_lifecycle(signed_in: AsyncClient) -> None:
    created = await signed_in.post("/api/projects/", json={"name": "Garden", "emoji": "🌱"})
    assert created.status_code == 201, created.text
    project = created.json()

    await _task(signed_in, "Plant tomatoes", project_id=project["id"])
    await _task(signed_in, "Loose task")

    listed = await signed_in.get("/api/projects/")
    assert [(item["name"], item["open_tasks"]) for item in listed.json()] == [("Garden", 1)]

    in_project = await signed_in.get(f"/api/projects/{project['id']}/tasks")
    assert [item["title"] for item in in_project.json()] == ["Plant tomatoes"]

    renamed = await signed_in.patch(f"/api/projects/{project['id']}", json={"name": "Allotment"})
    assert renamed.json()["name"] == "Allotment"

    deleted = await signed_in.delete(f"/api/projects/{project['id']}")
    assert deleted.status_code == 204
    assert (await signed_in.get(f"/api/projects/{project['id']}")).status_code == 404


async def test_unknown_project_on_task_is_not_found(signed_in: AsyncClient) -> None:
    response = await signed_in.post("/api/tasks/", json={"title": "Orphan", "project_id": 999})

    assert response.status_code == 404


async def test_tag_names_are_unique_per_owner(signed_in: AsyncClient) -> None:
    first = await signed_in.post("/api/tags", json={"name": "urgent"})
    assert first.status_code == 201

    duplicate = await signed_in.post("/api/tags", json={"name": "urgent"})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "conflict"


async def test_task_tag_set_operations(signed_in: AsyncClient) -> None:
    home = (await signed_in.post("/api/tags", json={"name": "home"})).json()
    work = (await signed_in.post("/api/tags", json={"name": "work", "color": "#f97316"})).json()
    task = await _task(signed_in, "Fix the sink")

    added = await signed_in.post(f"/api/tasks/{task['id']}/tags/{home['id']}")
    assert [tag["name"] for tag in added.json()] == ["home"]

    replaced = await signed_in.put(f"/api/tasks/{task['id']}/tags", json={"tag_ids": [work["id"]]})
    assert [tag["name"] for tag in replaced.json()] == ["work"]

    carrying = await signed_in.get(f"/api/tags/{work['id']}/tasks")
    assert [item["title"] for item in carrying.json()] == ["Fix the sink"]

    read = await signed_in.get(f"/api/tasks/{task['id']}")
    assert [tag["name"] for tag in read.json()["tags"]] == ["work"]

    removed = await signed_in.delete(f"/api/tasks/{task['id']}/tags/{work['id']}")
    assert removed.json() == []

    deleted = await signed_in.delete(f"/api/tags/{home['id']}")
    assert deleted.status_code == 204
    assert [tag["name"] for tag in (await signed_in.get("/api/tags")).json()] == ["work"]
