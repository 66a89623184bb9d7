from __future__ import annotations

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.core.config import Settings
from taskplanner.errors import (
    CircularDependencyError,
    DependencyBlockedError,
    DuplicateDependencyError,
    NotFoundError,
)
from taskplanner.models import Task, TaskStatus, User
from taskplanner.services import DependencyService, TaskService

pytestmark = pytest.mark.asyncio


async def _tasks(session: AsyncSession, owner_id: int, *titles: str) -> list[Task]:
    service = TaskService(session)
    return [await service.create_task(owner_id=owner_id, title=title) for title in titles]


async def test_chain_rejects_closing_edge(session: AsyncSession, user: User) -> None:
    a, b, c = await _tasks(session, user.id, "A", "B", "C")
    service = DependencyService(session)

    await service.add_dependency(a.id, b.id, owner_id=user.id)
    await service.add_dependency(b.id, c.id, owner_id=user.id)

    with pytest.raises(CircularDependencyError):
        await service.add_dependency(c.id, a.id, owner_id=user.id)

    rows = await service.list_dependencies(c.id, owner_id=user.id)
    assert rows == []


async def test_self_dependency_is_circular(session: AsyncSession, user: User) -> None:
    (a,) = await _tasks(session, user.id, "A")
    with pytest.raises(CircularDependencyError):
        await DependencyService(session).add_dependency(a.id, a.id, owner_id=user.id)


async def test_duplicate_reported_before_cycle(session: AsyncSession, user: User) -> None:
    a, b = await _tasks(session, user.id, "A", "B")
    service = DependencyService(session)
    await service.add_dependency(a.id, b.id, owner_id=user.id)

    with pytest.raises(DuplicateDependencyError):
        await service.add_dependency(a.id, b.id, owner_id=user.id)
    with pytest.raises(CircularDependencyError):
        await service.add_dependency(b.id, a.id, owner_id=user.id)

    assert len(await service.list_dependencies(a.id, owner_id=user.id)) == 1
    assert await service.list_dependencies(b.id, owner_id=user.id) == []


async def test_redundant_edge_is_accepted(session: AsyncSession, user: User) -> None:
    a, b, c = await _tasks(session, user.id, "A", "B", "C")
    service = DependencyService(session)
    await service.add_dependency(a.id, b.id, owner_id=user.id)
    await service.add_dependency(b.id, c.id, owner_id=user.id)

    await service.add_dependency(a.id, c.id, owner_id=user.id)

    rows = await service.list_dependencies(a.id, owner_id=user.id)
    assert sorted(task.id for _, task in rows) == sorted([b.id, c.id])


async def test_deleting_a_task_removes_its_edges(session: AsyncSession, user: User) -> None:
    a, b, c = await _tasks(session, user.id, "A", "B", "C")
    service = DependencyService(session)
    await service.add_dependency(a.id, b.id, owner_id=user.id)
    await service.add_dependency(b.id, c.id, owner_id=user.id)
    a_id, b_id, c_id = a.id, b.id, c.id

    await TaskService(session).delete_task(b_id, user.id)

    assert await service.list_dependencies(a_id, owner_id=user.id) == []
    assert await service.list_dependents(c_id, owner_id=user.id) == []
    assert await service.reaches(a_id, c_id) is False


async def test_diamond_is_not_a_cycle(session: AsyncSession, user: User) -> None:
    a, b, c, d = await _tasks(session, user.id, "A", "B", "C", "D")
    service = DependencyService(session)
    await service.add_dependency(a.id, b.id, owner_id=user.id)
    await service.add_dependency(a.id, c.id, owner_id=user.id)
    await service.add_dependency(b.id, d.id, owner_id=user.id)
    await service.add_dependency(c.id, d.id, owner_id=user.id)

    assert await service.reaches(a.id, d.id) is True
    assert await service.reaches(d.id, a.id) is False
    with pytest.raises(CircularDependencyError):
        await service.add_dependency(d.id, a.id, owner_id=user.id)


async def test_dependencies_are_owner_scoped(session: AsyncSession, user: User, other_user: User) -> None:
    (mine,) = await _tasks(session, user.id, "Mine")
    (theirs,) = await _tasks(session, other_user.id, "Theirs")

    with pytest.raises(NotFoundError):
        await DependencyService(session).add_dependency(mine.id, theirs.id, owner_id=user.id)


async def test_completion_gate_lists_open_blockers(session: AsyncSession, user: User) -> None:
    a, b, c = await _tasks(session, user.id, "A", "B", "C")
    service = DependencyService(session)
    await service.add_dependency(a.id, b.id, owner_id=user.id)
    await service.add_dependency(a.id, c.id, owner_id=user.id)
    await TaskService(session).toggle_task(c.id, user.id)

    gate = await service.can_complete(a.id, owner_id=user.id)
    assert gate.can_complete is False
    assert [task.id for task in gate.blocking_tasks] == [b.id]

    await TaskService(session).toggle_task(b.id, user.id)
    gate = await service.can_complete(a.id, owner_id=user.id)
    assert gate.can_complete is True
    assert gate.blocking_tasks == []


async def test_gate_is_advisory_by_default(session: AsyncSession, user: User) -> None:
    a, b = await _tasks(session, user.id, "A", "B")
    await DependencyService(session).add_dependency(a.id, b.id, owner_id=user.id)

    task = await TaskService(session).toggle_task(a.id, user.id)
    assert task.status == TaskStatus.DONE


async def test_enforced_gate_blocks_completion(session: AsyncSession, user: User, settings: Settings) -> None:
    a, b = await _tasks(session, user.id, "A", "B")
    await DependencyService(session).add_dependency(a.id, b.id, owner_id=user.id)
    enforced = TaskService(session, settings.model_copy(update={"enforce_dependency_gate": True}))

    with pytest.raises(DependencyBlockedError) as excinfo:
        await enforced.toggle_task(a.id, user.id)
    assert excinfo.value.details == {"blocking_task_ids": [b.id]}

    await enforced.toggle_task(b.id, user.id)
    task = await enforced.toggle_task(a.id, user.id)
    assert task.status == TaskStatus.DONE


async def test_removing_edge_unblocks(session: AsyncSession, user: User) -> None:
    a, b = await _tasks(session, user.id, "A", "B")
    service = DependencyService(session)
    edge = await service.add_dependency(a.id, b.id, owner_id=user.id)

    dependents = await service.list_dependents(b.id, owner_id=user.id)
    assert [task.id for _, task in dependents] == [a.id]

    await service.remove_dependency(edge.id, owner_id=user.id)
    assert (await service.can_complete(a.id, owner_id=user.id)).can_complete is True
    with pytest.raises(NotFoundError):
        await service.remove_dependency(edge.id, owner_id=user.id)


async def test_dependency_api_reports_conflicts(signed_in, session: AsyncSession, user: User) -> None:
    a, b = await _tasks(session, user.id, "A", "B")

    created = await signed_in.post(f"/api/tasks/{a.id}/dependencies", json={"depends_on_task_id": b.id})
    assert created.status_code == 201
    assert created.json()["depends_on_task_id"] == b.id

    duplicate = await signed_in.post(f"/api/tasks/{a.id}/dependencies", json={"depends_on_task_id": b.id})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "duplicate_dependency"

    circular = await signed_in.post(f"/api/tasks/{b.id}/dependencies", json={"depends_on_task_id": a.id})
    assert circular.status_code == 409
    assert circular.json()["code"] == "circular_dependency"

    check = await signed_in.get(f"/api/tasks/{a.id}/can-complete")
    assert check.status_code == 200
    assert check.json()["can_complete"] is False
    assert [item["id"] for item in check.json()["blocking_tasks"]] == [b.id]
