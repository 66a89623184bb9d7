"""Repository for task dependency edges."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskDependency
from .base import BaseRepository


class DependencyRepository(BaseRepository[TaskDependency]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskDependency)

    async def get_for_owner(self, dependency_id: int, owner_id: int) -> TaskDependency | None:
        """Return the edge when its dependent task belongs to ``owner_id``."""
        return await self._first(
            select(TaskDependency)
            .join(Task, Task.id == TaskDependency.task_id)
            .where(TaskDependency.id == dependency_id, Task.owner_id == owner_id)
        )

    async def find_edge(self, task_id: int, depends_on_task_id: int) -> TaskDependency | None:
        return await self._first(
            select(TaskDependency).where(
                TaskDependency.task_id == task_id,
                TaskDependency.depends_on_task_id == depends_on_task_id,
            )
        )

    async def successors(self, task_id: int) -> list[int]:
        """Ids of the tasks ``task_id`` depends on."""
        result = await self.session.execute(
            select(TaskDependency.depends_on_task_id).where(TaskDependency.task_id == task_id)
        )
        return [int(value) for value in result.scalars().all()]

    async def list_dependencies(self, task_id: int) -> list[tuple[TaskDependency, Task]]:
        """Outgoing edges with the task each one points at."""
        result = await self.session.execute(
            select(TaskDependency, Task)
            .join(Task, Task.id == TaskDependency.depends_on_task_id)
            .where(TaskDependency.task_id == task_id)
            .order_by(TaskDependency.created_at, TaskDependency.id)
        )
        return [(edge, task) for edge, task in result.all()]

    async def list_dependents(self, task_id: int) -> list[tuple[TaskDependency, Task]]:
        """Incoming edges with the task that depends on ``task_id``."""
        result = await self.session.execute(
            select(TaskDependency, Task)
            .join(Task, Task.id == TaskDependency.task_id)
            .where(TaskDependency.depends_on_task_id == task_id)
            .order_by(TaskDependency.created_at, TaskDependency.id)
        )
        return [(edge, task) for edge, task in result.all()]
