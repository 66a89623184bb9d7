"""Subtask management and the completion cascade to the parent task."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..errors import ApplicationError, NotFoundError, ValidationError
from ..models import Subtask, Task
from ..repositories import SubtaskRepository
from .tasks import TaskService

logger = logging.getLogger("taskplanner.services.subtasks")


@dataclass(slots=True)
class SubtaskToggle:
    subtask: Subtask
    completed_task: Task | None = None


class SubtaskService:
    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self._session = session
        self._repository = SubtaskRepository(session)
        self._tasks = TaskService(session, settings)

    async def require_subtask(self, subtask_id: int, owner_id: int) -> Subtask:
        subtask = await self._repository.get_for_owner(subtask_id, owner_id)
        if subtask is None:
            raise NotFoundError("Subtask not found.", details={"subtask_id": subtask_id})
        return subtask

    async def list_for_task(self, task_id: int, owner_id: int) -> list[Subtask]:
        await self._tasks.require_task(task_id, owner_id)
        return await self._repository.list_for_task(task_id)

    async def list_children(self, subtask_id: int, owner_id: int) -> list[Subtask]:
        await self.require_subtask(subtask_id, owner_id)
        return await self._repository.list_children(subtask_id)

    async def create_subtask(
        self,
        task_id: int,
        owner_id: int,
        *,
        title: str,
        parent_id: int | None = None,
    ) -> Subtask:
        """Append a subtask after its last sibling."""
        await self._tasks.require_task(task_id, owner_id)
        title = title.strip()
        if not title:
            raise ValidationError("Title is required.", details={"field": "title"})
        if parent_id is not None:
            parent = await self.require_subtask(parent_id, owner_id)
            if parent.task_id != task_id:
                raise ValidationError("Parent subtask belongs to another task.", details={"field": "parent_id"})

        subtask = Subtask(
            task_id=task_id,
            parent_id=parent_id,
            title=title,
            position=await self._repository.next_position(task_id, parent_id),
        )
        await self._repository.add(subtask)
        await self._session.commit()
        await self._repository.refresh(subtask)
        await self._tasks.invalidate_cache(owner_id)
        return subtask

    async def update_subtask(self, subtask_id: int, owner_id: int, *, title: str) -> Subtask:
        subtask = await self.require_subtask(subtask_id, owner_id)
        title = title.strip()
        if not title:
            raise ValidationError("Title is required.", details={"field": "title"})
        subtask.title = title
        await self._session.commit()
        await self._repository.refresh(subtask)
        return subtask

    async def delete_subtask(self, subtask_id: int, owner_id: int) -> None:
        """Delete a subtask; its descendants go with it."""
        subtask = await self.require_subtask(subtask_id, owner_id)
        await self._repository.delete(subtask)
        await self._session.commit()
        await self._tasks.invalidate_cache(owner_id)

    async def reorder(self, owner_id: int, subtask_ids: Sequence[int]) -> list[Subtask]:
        """Assign positions following ``subtask_ids``; all must be siblings."""
        subtasks = [await self.require_subtask(subtask_id, owner_id) for subtask_id in subtask_ids]
        parents = {(item.task_id, item.parent_id) for item in subtasks}
        if len(parents) != 1:
            raise ValidationError("Only siblings can be reordered together.")
        for position, subtask in enumerate(subtasks):
            subtask.position = position
        await self._session.commit()
        return subtasks

    async def toggle_subtask(self, subtask_id: int, owner_id: int) -> SubtaskToggle:
        """Flip ``completed`` and cascade completion to the parent task.

        The toggle is committed first. When every subtask of the task is now
        complete the task is marked done; a failure there is logged and the
        toggle stays. Un-completing never reopens the task.
        """
        subtask = await self.require_subtask(subtask_id, owner_id)
        subtask.completed = not subtask.completed
        await self._session.commit()
        await self._repository.refresh(subtask)
        await self._tasks.invalidate_cache(owner_id)

        result = SubtaskToggle(subtask=subtask)
        if not subtask.completed:
            return result

        siblings = await self._repository.list_for_task(subtask.task_id)
        if not siblings or not all(item.completed for item in siblings):
            return result

        try:
            result.completed_task = await self._tasks.mark_done(subtask.task_id, owner_id)
        except ApplicationError as exc:
            await self._session.rollback()
            await self._repository.refresh(subtask)
            logger.warning(
                "Could not auto-complete task %s: %s",
                subtask.task_id,
                exc.message,
                extra={"owner_id": owner_id, "task_id": subtask.task_id, "code": exc.code},
            )
        except Exception:
            await self._session.rollback()
            await self._repository.refresh(subtask)
            logger.exception(
                "Unexpected failure auto-completing task %s",
                subtask.task_id,
                extra={"owner_id": owner_id, "task_id": subtask.task_id},
            )
        if result.completed_task is not None:
            logger.info(
                "Task %s completed by its subtasks",
                subtask.task_id,
                extra={"owner_id": owner_id, "task_id": subtask.task_id},
            )
        return result


__all__ = ["SubtaskService", "SubtaskToggle"]
