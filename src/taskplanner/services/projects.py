"""Project management."""

from __future__ import annotations

from typing import Any

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.cache import invalidate_task_cache
from ..errors import NotFoundError, ValidationError
from ..models import DEFAULT_PROJECT_COLOR, Project, Task
from ..repositories import ProjectRepository, TaskRepository


class ProjectService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = ProjectRepository(session)
        self._tasks = TaskRepository(session)

    async def require_project(self, project_id: int, owner_id: int) -> Project:
        project = await self._repository.get_for_owner(project_id, owner_id)
        if project is None:
            raise NotFoundError("Project not found.", details={"project_id": project_id})
        return project

    async def list_projects(self, owner_id: int) -> list[Project]:
        return await self._repository.list_for_owner(owner_id)

    async def open_task_counts(self, owner_id: int) -> dict[int, int]:
        return await self._repository.open_task_counts(owner_id)

    async def list_project_tasks(self, project_id: int, owner_id: int) -> list[Task]:
        await self.require_project(project_id, owner_id)
        return await self._tasks.list_for_project(project_id, owner_id)

    async def create_project(
        self,
        owner_id: int,
        *,
        name: str,
        description: str | None = None,
        color: str | None = None,
        emoji: str | None = None,
    ) -> Project:
        name = name.strip()
        if not name:
            raise ValidationError("Project name is required.", details={"field": "name"})
        existing = await self._repository.list_for_owner(owner_id)
        project = Project(
            owner_id=owner_id,
            name=name,
            description=description or None,
            color=color or DEFAULT_PROJECT_COLOR,
            emoji=emoji or None,
            position=len(existing),
        )
        await self._repository.add(project)
        await self._session.commit()
        await self._repository.refresh(project)
        return project

    async def update_project(self, project_id: int, owner_id: int, **updates: Any) -> Project:
        project = await self.require_project(project_id, owner_id)
        for name, value in updates.items():
            if name == "name":
                if value is None or not value.strip():
                    raise ValidationError("Project name is required.", details={"field": "name"})
                value = value.strip()
            elif value is None and name in {"color", "position"}:
                continue
            setattr(project, name, value)
        await self._session.commit()
        await self._repository.refresh(project)
        return project

    async def delete_project(self, project_id: int, owner_id: int) -> None:
        """Delete a project; its tasks stay with ``project_id`` cleared."""
        project = await self.require_project(project_id, owner_id)
        for task in await self._tasks.list_for_project(project_id, owner_id):
            task.project_id = None
        await self._repository.delete(project)
        await self._session.commit()
        await invalidate_task_cache(owner_id)


__all__ = ["ProjectService"]
