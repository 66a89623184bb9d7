from __future__ import annotations

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.core.config import Settings
from taskplanner.errors import ValidationError
from taskplanner.models import TaskStatus, User
from taskplanner.services import DependencyService, SubtaskService, TaskService

pytestmark = pytest.mark.asyncio


async def test_completing_every_subtask_completes_the_task(session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Pack for trip")
    service = SubtaskService(session)
    clothes = await service.create_subtask(task.id, user.id, title="Clothes")
    socks = await service.create_subtask(task.id, user.id, title="Socks", parent_id=clothes.id)
    charger = await service.create_subtask(task.id, user.id, title="Charger")

    first = await service.toggle_subtask(clothes.id, user.id)
    second = await service.toggle_subtask(socks.id, user.id)
    assert first.completed_task is None
    assert second.completed_task is None

    last = await service.toggle_subtask(charger.id, user.id)
    assert last.subtask.completed is True
    assert last.completed_task is not None
    assert last.completed_task.status == TaskStatus.DONE
    assert last.completed_task.completed_at is not None


async def test_unchecking_a_subtask_keeps_the_task_done(session: AsyncSession, user: User) -> None:
    tasks = TaskService(session)
    task = await tasks.create_task(owner_id=user.id, title="Write report")
    service = SubtaskService(session)
    outline = await service.create_subtask(task.id, user.id, title="Outline")

    await service.toggle_subtask(outline.id, user.id)
    undone = await service.toggle_subtask(outline.id, user.id)

    assert undone.subtask.completed is False
    assert (await tasks.require_task(task.id, user.id)).status == TaskStatus.DONE


async def test_blocked_task_keeps_subtask_toggle(session: AsyncSession, user: User, settings: Settings) -> None:
    enforced = settings.model_copy(update={"enforce_dependency_gate": True})
    tasks = TaskService(session, enforced)
    task = await tasks.create_task(owner_id=user.id, title="Ship release")
    blocker = await tasks.create_task(owner_id=user.id, title="Pass review")
    await DependencyService(session).add_dependency(task.id, blocker.id, owner_id=user.id)

    task_id, owner_id = task.id, user.id

    service = SubtaskService(session, enforced)
    only = await service.create_subtask(task_id, owner_id, title="Tag version")
    result = await service.toggle_subtask(only.id, owner_id)

    assert result.subtask.completed is True
    assert result.completed_task is None
    assert (await tasks.require_task(task_id, owner_id)).status == TaskStatus.TODO


async def test_deleting_a_subtask_removes_its_descendants(session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Plan party")
    service = SubtaskService(session)
    food = await service.create_subtask(task.id, user.id, title="Food")
    await service.create_subtask(task.id, user.id, title="Cake", parent_id=food.id)
    music = await service.create_subtask(task.id, user.id, title="Music")

    await service.delete_subtask(food.id, user.id)

    remaining = await service.list_for_task(task.id, user.id)
    assert [item.id for item in remaining] == [music.id]


async def test_parent_must_belong_to_the_same_task(session: AsyncSession, user: User) -> None:
    tasks = TaskService(session)
    first = await tasks.create_task(owner_id=user.id, title="First")
    second = await tasks.create_task(owner_id=user.id, title="Second")
    service = SubtaskService(session)
    parent = await service.create_subtask(first.id, user.id, title="Parent")

    with pytest.raises(ValidationError):
        await service.create_subtask(second.id, user.id, title="Child", parent_id=parent.id)


async def test_positions_follow_siblings_and_reorder(session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Errands")
    service = SubtaskService(session)
    a = await service.create_subtask(task.id, user.id, title="Bank")
    b = await service.create_subtask(task.id, user.id, title="Post office")
    child = await service.create_subtask(task.id, user.id, title="Stamps", parent_id=b.id)
    assert (a.position, b.position, child.position) == (0, 1, 0)

    reordered = await service.reorder(user.id, [b.id, a.id])
    assert [(item.id, item.position) for item in reordered] == [(b.id, 0), (a.id, 1)]

    with pytest.raises(ValidationError):
        await service.reorder(user.id, [a.id, child.id])


async def test_task_read_reports_subtask_progress(session: AsyncSession, user: User) -> None:
    tasks = TaskService(session)
    task = await tasks.create_task(owner_id=user.id, title="Clean house")
    service = SubtaskService(session)
    kitchen = await service.create_subtask(task.id, user.id, title="Kitchen")
    await service.create_subtask(task.id, user.id, title="Bathroom")
    await service.toggle_subtask(kitchen.id, user.id)

    read = await tasks.to_read_one(await tasks.require_task(task.id, user.id))
    assert (read.subtasks_completed, read.subtasks_total) == (1, 2)


async def test_subtask_toggle_api_reports_completed_task(signed_in, session: AsyncSession, user: User) -> None:
    task = await TaskService(session).create_task(owner_id=user.id, title="Laundry")

    created = await signed_in.post(f"/api/tasks/{task.id}/subtasks", json={"title": "Fold"})
    assert created.status_code == 201
    subtask_id = created.json()["id"]

    toggled = await signed_in.post(f"/api/subtasks/{subtask_id}/toggle")
    assert toggled.status_code == 200
    payload = toggled.json()
    assert payload["subtask"]["completed"] is True
    assert payload["task_completed"] is True
    assert payload["task"]["status"] == "done"
