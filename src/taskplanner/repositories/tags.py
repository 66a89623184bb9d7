"""Repository for tags and the task/tag association."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Tag, Task, TaskTagLink
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Tag)

    async def list_for_owner(self, owner_id: int) -> list[Tag]:
        return await self._all(select(Tag).where(Tag.owner_id == owner_id).order_by(Tag.name))

    async def get_for_owner(self, tag_id: int, owner_id: int) -> Tag | None:
        return await self._first(select(Tag).where(Tag.id == tag_id, Tag.owner_id == owner_id))

    async def get_by_name(self, owner_id: int, name: str) -> Tag | None:
        return await self._first(
            select(Tag).where(Tag.owner_id == owner_id, func.lower(Tag.name) == name.lower())
        )

    async def list_by_ids(self, owner_id: int, tag_ids: Iterable[int]) -> list[Tag]:
        ids = list(tag_ids)
        if not ids:
            return []
        return await self._all(select(Tag).where(Tag.owner_id == owner_id, Tag.id.in_(ids)))

    async def list_for_task(self, task_id: int) -> list[Tag]:
        return await self._all(
            select(Tag)
            .join(TaskTagLink, TaskTagLink.tag_id == Tag.id)
            .where(TaskTagLink.task_id == task_id)
            .order_by(Tag.name)
        )

    async def list_for_tasks(self, task_ids: Iterable[int]) -> dict[int, list[Tag]]:
        """Map each task id to its tags in one round trip."""
        ids = list(task_ids)
        mapping: dict[int, list[Tag]] = {task_id: [] for task_id in ids}
        if not ids:
            return mapping
        result = await self.session.execute(
            select(TaskTagLink.task_id, Tag)
            .join(Tag, Tag.id == TaskTagLink.tag_id)
            .where(TaskTagLink.task_id.in_(ids))
            .order_by(Tag.name)
        )
        for task_id, tag in result.all():
            mapping[int(task_id)].append(tag)
        return mapping

    async def get_link(self, task_id: int, tag_id: int) -> TaskTagLink | None:
        return await self.session.get(TaskTagLink, (task_id, tag_id))

    async def add_link(self, task_id: int, tag_id: int) -> TaskTagLink:
        link = TaskTagLink(task_id=task_id, tag_id=tag_id)
        self.session.add(link)
        await self.session.flush()
        return link

    async def remove_link(self, task_id: int, tag_id: int) -> None:
        link = await self.get_link(task_id, tag_id)
        if link is not None:
            await self.session.delete(link)
            await self.session.flush()

    async def clear_links(self, task_id: int) -> None:
        result = await self.session.execute(select(TaskTagLink).where(TaskTagLink.task_id == task_id))
        for link in result.scalars().all():
            await self.session.delete(link)
        await self.session.flush()

    async def list_tasks_for_tag(self, tag_id: int, owner_id: int) -> list[Task]:
        result = await self.session.execute(
            select(Task)
            .join(TaskTagLink, TaskTagLink.task_id == Task.id)
            .where(TaskTagLink.tag_id == tag_id, Task.owner_id == owner_id)
            .order_by(Task.created_at.desc())
        )
        return list(result.scalars().all())
