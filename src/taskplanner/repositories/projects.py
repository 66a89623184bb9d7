"""Repository for projects."""

from __future__ import annotations

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Project, Task, TaskStatus
from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    async def list_for_owner(self, owner_id: int) -> list[Project]:
        """Projects ordered by position, then name."""
        return await self._all(
            select(Project).where(Project.owner_id == owner_id).order_by(Project.position, Project.name)
        )

    async def get_for_owner(self, project_id: int, owner_id: int) -> Project | None:
        return await self._first(select(Project).where(Project.id == project_id, Project.owner_id == owner_id))

    async def open_task_counts(self, owner_id: int) -> dict[int, int]:
        """Return the number of incomplete tasks per project."""
        result = await self.session.execute(
            select(Task.project_id, func.count())
            .where(Task.owner_id == owner_id, Task.project_id.is_not(None), Task.status != TaskStatus.DONE)
            .group_by(Task.project_id)
        )
        return {int(project_id): int(count) for project_id, count in result.all()}
