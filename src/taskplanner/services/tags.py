"""Tags and their assignment to tasks."""

from __future__ import annotations

from collections.abc import Sequence

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.cache import invalidate_task_cache
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import DEFAULT_TAG_COLOR, Tag, Task
from ..repositories import TagRepository, TaskRepository


class TagService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = TagRepository(session)
        self._tasks = TaskRepository(session)

    async def require_tag(self, tag_id: int, owner_id: int) -> Tag:
        tag = await self._repository.get_for_owner(tag_id, owner_id)
        if tag is None:
            raise NotFoundError("Tag not found.", details={"tag_id": tag_id})
        return tag

    async def _require_task(self, task_id: int, owner_id: int) -> Task:
        task = await self._tasks.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found.", details={"task_id": task_id})
        return task

    async def _ensure_unique(self, owner_id: int, name: str, *, exclude_id: int | None = None) -> None:
        existing = await self._repository.get_by_name(owner_id, name)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("A tag with this name already exists.", details={"field": "name"})

    async def list_tags(self, owner_id: int) -> list[Tag]:
        return await self._repository.list_for_owner(owner_id)

    async def create_tag(self, owner_id: int, *, name: str, color: str | None = None) -> Tag:
        name = name.strip()
        if not name:
            raise ValidationError("Tag name is required.", details={"field": "name"})
        await self._ensure_unique(owner_id, name)
        tag = Tag(owner_id=owner_id, name=name, color=color or DEFAULT_TAG_COLOR)
        await self._repository.add(tag)
        await self._session.commit()
        await self._repository.refresh(tag)
        return tag

    async def update_tag(self, tag_id: int, owner_id: int, *, name: str | None = None, color: str | None = None) -> Tag:
        tag = await self.require_tag(tag_id, owner_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Tag name is required.", details={"field": "name"})
            await self._ensure_unique(owner_id, name, exclude_id=tag.id)
            tag.name = name
        if color:
            tag.color = color
        await self._session.commit()
        await self._repository.refresh(tag)
        await invalidate_task_cache(owner_id)
        return tag

    async def delete_tag(self, tag_id: int, owner_id: int) -> None:
        tag = await self.require_tag(tag_id, owner_id)
        await self._repository.delete(tag)
        await self._session.commit()
        await invalidate_task_cache(owner_id)

    async def list_task_tags(self, task_id: int, owner_id: int) -> list[Tag]:
        await self._require_task(task_id, owner_id)
        return await self._repository.list_for_task(task_id)

    async def add_tag_to_task(self, task_id: int, tag_id: int, owner_id: int) -> list[Tag]:
        """Attach a tag; attaching twice is a no-op."""
        await self._require_task(task_id, owner_id)
        await self.require_tag(tag_id, owner_id)
        if await self._repository.get_link(task_id, tag_id) is None:
            await self._repository.add_link(task_id, tag_id)
            await self._session.commit()
            await invalidate_task_cache(owner_id)
        return await self._repository.list_for_task(task_id)

    async def remove_tag_from_task(self, task_id: int, tag_id: int, owner_id: int) -> list[Tag]:
        await self._require_task(task_id, owner_id)
        await self._repository.remove_link(task_id, tag_id)
        await self._session.commit()
        await invalidate_task_cache(owner_id)
        return await self._repository.list_for_task(task_id)

    async def set_task_tags(self, task_id: int, tag_ids: Sequence[int], owner_id: int) -> list[Tag]:
        """Replace the task's tag set with ``tag_ids``."""
        await self._require_task(task_id, owner_id)
        unique_ids = list(dict.fromkeys(tag_ids))
        tags = await self._repository.list_by_ids(owner_id, unique_ids)
        if len(tags) != len(unique_ids):
            raise NotFoundError("Tag not found.", details={"tag_ids": unique_ids})
        await self._repository.clear_links(task_id)
        for tag_id in unique_ids:
            await self._repository.add_link(task_id, tag_id)
        await self._session.commit()
        await invalidate_task_cache(owner_id)
        return await self._repository.list_for_task(task_id)

    async def list_tasks_for_tag(self, tag_id: int, owner_id: int) -> list[Task]:
        await self.require_tag(tag_id, owner_id)
        return await self._repository.list_tasks_for_tag(tag_id, owner_id)


__all__ = ["TagService"]
