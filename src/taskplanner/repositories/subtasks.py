"""Repository for subtasks."""

from __future__ import annotations

from sqlalchemy import case, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Subtask, Task
from .base import BaseRepository


class SubtaskRepository(BaseRepository[Subtask]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Subtask)

    async def get_for_owner(self, subtask_id: int, owner_id: int) -> Subtask | None:
        """Return the subtask when its task belongs to ``owner_id``."""
        return await self._first(
            select(Subtask)
            .join(Task, Task.id == Subtask.task_id)
            .where(Subtask.id == subtask_id, Task.owner_id == owner_id)
        )

    async def list_for_task(self, task_id: int) -> list[Subtask]:
        return await self._all(
            select(Subtask).where(Subtask.task_id == task_id).order_by(Subtask.position, Subtask.id)
        )

    async def list_children(self, parent_id: int) -> list[Subtask]:
        return await self._all(
            select(Subtask).where(Subtask.parent_id == parent_id).order_by(Subtask.position, Subtask.id)
        )

    async def next_position(self, task_id: int, parent_id: int | None) -> int:
        query = select(func.max(Subtask.position)).where(Subtask.task_id == task_id)
        if parent_id is None:
            query = query.where(Subtask.parent_id.is_(None))
        else:
            query = query.where(Subtask.parent_id == parent_id)
        result = await self.session.execute(query)
        current = result.scalar_one_or_none()
        return 0 if current is None else int(current) + 1

    async def completion_counts(self, task_ids: list[int]) -> dict[int, tuple[int, int]]:
        """Map task id to ``(completed, total)`` subtask counts."""
        if not task_ids:
            return {}
        result = await self.session.execute(
            select(
                Subtask.task_id,
                func.sum(case((Subtask.completed.is_(True), 1), else_=0)),
                func.count(),
            )
            .where(Subtask.task_id.in_(task_ids))
            .group_by(Subtask.task_id)
        )
        return {int(task_id): (int(done or 0), int(total)) for task_id, done, total in result.all()}
