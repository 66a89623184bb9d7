"""Task dependency graph: cycle-safe insertion and the completion gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import CircularDependencyError, DuplicateDependencyError, NotFoundError
from ..models import Task, TaskDependency, TaskStatus
from ..repositories import DependencyRepository, TaskRepository

logger = logging.getLogger("taskplanner.services.dependencies")


@dataclass(slots=True)
class CompletionGate:
    """Result of :meth:`DependencyService.can_complete`."""

    can_complete: bool
    blocking_tasks: list[Task] = field(default_factory=list)


class DependencyService:
    """Maintain ``task_dependencies`` as an acyclic graph per owner."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = DependencyRepository(session)
        self._tasks = TaskRepository(session)

    async def _require_task(self, task_id: int, owner_id: int) -> Task:
        task = await self._tasks.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found.", details={"task_id": task_id})
        return task

    async def reaches(self, start_id: int, target_id: int) -> bool:
        """Return ``True`` if ``target_id`` is reachable from ``start_id``.

        Walks ``depends_on`` edges outward with an explicit stack. A node seen
        twice (diamond shapes) is skipped, not reported.
        """
        visited: set[int] = set()
        stack = [start_id]
        while stack:
            current = stack.pop()
            if current == target_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            for successor in await self._repository.successors(current):
                if successor not in visited:
                    stack.append(successor)
        return False

    async def would_create_cycle(self, task_id: int, depends_on_task_id: int) -> bool:
        if task_id == depends_on_task_id:
            return True
        return await self.reaches(depends_on_task_id, task_id)

    async def add_dependency(self, task_id: int, depends_on_task_id: int, *, owner_id: int) -> TaskDependency:
        """Insert the edge ``task_id -> depends_on_task_id``.

        Duplicates are reported before cycles, so re-adding an existing edge
        is always a duplicate.
        """
        await self._require_task(task_id, owner_id)
        await self._require_task(depends_on_task_id, owner_id)

        if await self._repository.find_edge(task_id, depends_on_task_id) is not None:
            raise DuplicateDependencyError(
                details={"task_id": task_id, "depends_on_task_id": depends_on_task_id},
            )
        if await self.would_create_cycle(task_id, depends_on_task_id):
            raise CircularDependencyError(
                details={"task_id": task_id, "depends_on_task_id": depends_on_task_id},
            )

        edge = TaskDependency(task_id=task_id, depends_on_task_id=depends_on_task_id)
        await self._repository.add(edge)
        await self._session.commit()
        await self._repository.refresh(edge)
        logger.info(
            "Added dependency %s -> %s",
            task_id,
            depends_on_task_id,
            extra={"owner_id": owner_id, "dependency_id": edge.id},
        )
        return edge

    async def remove_dependency(self, dependency_id: int, *, owner_id: int) -> None:
        edge = await self._repository.get_for_owner(dependency_id, owner_id)
        if edge is None:
            raise NotFoundError("Dependency not found.", details={"dependency_id": dependency_id})
        await self._repository.delete(edge)
        await self._session.commit()

    async def list_dependencies(self, task_id: int, *, owner_id: int) -> list[tuple[TaskDependency, Task]]:
        await self._require_task(task_id, owner_id)
        return await self._repository.list_dependencies(task_id)

    async def list_dependents(self, task_id: int, *, owner_id: int) -> list[tuple[TaskDependency, Task]]:
        await self._require_task(task_id, owner_id)
        return await self._repository.list_dependents(task_id)

    async def blocking_tasks(self, task_id: int) -> list[Task]:
        rows = await self._repository.list_dependencies(task_id)
        return [task for _, task in rows if task.status != TaskStatus.DONE]

    async def can_complete(self, task_id: int, *, owner_id: int) -> CompletionGate:
        await self._require_task(task_id, owner_id)
        blockers = await self.blocking_tasks(task_id)
        return CompletionGate(can_complete=not blockers, blocking_tasks=blockers)


__all__ = ["CompletionGate", "DependencyService"]
