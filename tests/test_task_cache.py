from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fakeredis.aioredis import FakeRedis
from sqlmodel.ext.asyncio.session import AsyncSession

from taskplanner.api.routers.tasks import get_task_statistics, list_tasks, read_today
from taskplanner.core.cache import cache_metrics, close_cache_client, set_cache_client
from taskplanner.core.config import Settings
from taskplanner.models import TaskStatus, User
from taskplanner.services import TagService, TaskService

pytestmark = pytest.mark.asyncio


@pytest.fixture(autouse=True)
async def configure_cache(reset_shared_state: None, settings: Settings) -> AsyncIterator[None]:
    fake = FakeRedis(decode_responses=True)
    set_cache_client(fake)
    cache_metrics.reset()
    original = settings.cache_enabled
    settings.cache_enabled = True
    try:
        yield
    finally:
        settings.cache_enabled = original
        await close_cache_client()
        cache_metrics.reset()


async def test_task_list_cache_hit_miss_and_invalidation(session: AsyncSession, user: User) -> None:
    service = TaskService(session)
    owner_id = user.id
    await service.create_task(owner_id=owner_id, title="Task 1")
    await service.create_task(owner_id=owner_id, title="Task 2")

    cache_metrics.reset()

    first = await list_tasks(session=session, current_user=user)
    assert first.total == 2
    metrics = cache_metrics.snapshot()
    assert metrics["misses"] == 1
    assert metrics["hits"] == 0
    assert metrics["skipped"] == 0

    second = await list_tasks(session=session, current_user=user)
    metrics = cache_metrics.snapshot()
    assert metrics["hits"] == 1
    assert metrics["misses"] == 1
    assert second.total == first.total

    await service.create_task(owner_id=owner_id, title="Task 3")

    third = await list_tasks(session=session, current_user=user)
    metrics = cache_metrics.snapshot()
    assert metrics["misses"] == 2
    assert metrics["hits"] == 1
    assert metrics["invalidations"] >= 1
    assert third.total == 3


async def test_task_statistics_cache_refreshes_after_toggle(
    session: AsyncSession, user: User, settings: Settings
) -> None:
    service = TaskService(session, settings)
    owner_id = user.id
    finished = await service.create_task(owner_id=owner_id, title="Finished", status=TaskStatus.DONE)
    await service.create_task(owner_id=owner_id, title="Pending")
    finished_id = finished.id

    cache_metrics.reset()

    initial = await get_task_statistics(session=session, settings=settings, current_user=user)
    assert initial.owner_id == owner_id
    assert initial.total == 2
    assert initial.by_status[TaskStatus.DONE.value] == 1
    assert initial.by_status[TaskStatus.TODO.value] == 1

    cached = await get_task_statistics(session=session, settings=settings, current_user=user)
    assert cache_metrics.snapshot()["hits"] == 1
    assert cached.by_status == initial.by_status

    await service.toggle_task(finished_id, owner_id)

    refreshed = await get_task_statistics(session=session, settings=settings, current_user=user)
    metrics = cache_metrics.snapshot()
    assert metrics["misses"] == 2
    assert metrics["invalidations"] >= 1
    assert refreshed.by_status[TaskStatus.TODO.value] == 2
    assert refreshed.by_status[TaskStatus.DONE.value] == 0


async def test_cache_entries_are_scoped_per_owner(
    session: AsyncSession, user: User, other_user: User, settings: Settings
) -> None:
    await TaskService(session).create_task(owner_id=user.id, title="Mine")

    await read_today(session=session, settings=settings, current_user=user)
    await read_today(session=session, settings=settings, current_user=other_user)
    assert cache_metrics.snapshot()["misses"] == 2

    await TagService(session).create_tag(other_user.id, name="errands")

    await read_today(session=session, settings=settings, current_user=user)
    assert cache_metrics.snapshot()["hits"] == 1


async def test_disabled_cache_is_skipped(session: AsyncSession, user: User, settings: Settings) -> None:
    settings.cache_enabled = False

    await list_tasks(session=session, current_user=user)

    assert cache_metrics.snapshot()["skipped"] == 1
