"""Repository for interacting with task persistence models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from sqlalchemy import case, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskPriority, TaskStatus, TaskTagLink
from .base import BaseRepository

SortField = Literal["created_at", "due_date", "title", "priority"]
SortOrder = Literal["asc", "desc"]


@dataclass(slots=True)
class TaskSearchCriteria:
    """Filters accepted by :meth:`TaskRepository.search`."""

    query: str | None = None
    project_id: int | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    tag_ids: list[int] = field(default_factory=list)
    match_all_tags: bool = False
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"


_PRIORITY_ORDER = case(
    (Task.priority == TaskPriority.HIGH, 3),
    (Task.priority == TaskPriority.MEDIUM, 2),
    else_=1,
)


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def get_for_owner(self, task_id: int, owner_id: int) -> Task | None:
        """Retrieve a task by ID ensuring it belongs to the provided owner."""
        return await self._first(select(Task).where(Task.id == task_id, Task.owner_id == owner_id))

    async def list_for_owner(self, owner_id: int) -> list[Task]:
        """All tasks of an owner, by position then newest first."""
        return await self._all(
            select(Task).where(Task.owner_id == owner_id).order_by(Task.position, Task.created_at.desc())
        )

    async def list_by_ids(self, owner_id: int, task_ids: list[int]) -> list[Task]:
        if not task_ids:
            return []
        return await self._all(select(Task).where(Task.owner_id == owner_id, Task.id.in_(task_ids)))

    async def list_incomplete(self, owner_id: int) -> list[Task]:
        return await self._all(
            select(Task)
            .where(Task.owner_id == owner_id, Task.status != TaskStatus.DONE)
            .order_by(Task.position, Task.created_at.desc())
        )

    async def list_completed(self, owner_id: int) -> list[Task]:
        return await self._all(
            select(Task)
            .where(Task.owner_id == owner_id, Task.status == TaskStatus.DONE)
            .order_by(Task.completed_at.desc())
        )

    async def list_for_project(self, project_id: int, owner_id: int) -> list[Task]:
        return await self._all(
            select(Task)
            .where(Task.project_id == project_id, Task.owner_id == owner_id)
            .order_by(Task.position, Task.created_at.desc())
        )

    async def list_paginated(
        self,
        *,
        owner_id: int,
        status: TaskStatus | None = None,
        project_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        """Return tasks matching the provided filters along with the total count."""
        query = select(Task).where(Task.owner_id == owner_id)
        count_query = select(func.count()).select_from(Task).where(Task.owner_id == owner_id)
        if status is not None:
            query = query.where(Task.status == status)
            count_query = count_query.where(Task.status == status)
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
            count_query = count_query.where(Task.project_id == project_id)
        query = query.order_by(Task.position, Task.created_at.desc(), Task.id).limit(limit).offset(offset)
        tasks = await self._all(query)
        total_result = await self.session.execute(count_query)
        return tasks, int(total_result.scalar_one())

    async def count_by_status(self, owner_id: int) -> dict[TaskStatus, int]:
        result = await self.session.execute(
            select(Task.status, func.count()).where(Task.owner_id == owner_id).group_by(Task.status)
        )
        return {TaskStatus(status): int(count) for status, count in result.all()}

    async def max_position(self, owner_id: int) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.max(Task.position), -1)).where(Task.owner_id == owner_id)
        )
        return int(result.scalar_one())

    async def search(self, owner_id: int, criteria: TaskSearchCriteria) -> list[Task]:
        """Compose a filtered, sorted query from ``criteria``."""
        query = select(Task).where(Task.owner_id == owner_id)

        if criteria.query:
            pattern = f"%{criteria.query.lower()}%"
            query = query.where(
                or_(
                    func.lower(Task.title).like(pattern),
                    func.lower(func.coalesce(Task.description, "")).like(pattern),
                )
            )
        if criteria.project_id is not None:
            query = query.where(Task.project_id == criteria.project_id)
        if criteria.status is not None:
            query = query.where(Task.status == criteria.status)
        if criteria.priority is not None:
            query = query.where(Task.priority == criteria.priority)
        if criteria.tag_ids:
            tagged = (
                select(TaskTagLink.task_id)
                .where(TaskTagLink.tag_id.in_(criteria.tag_ids))
                .group_by(TaskTagLink.task_id)
            )
            if criteria.match_all_tags:
                tagged = tagged.having(
                    func.count(func.distinct(TaskTagLink.tag_id)) == len(set(criteria.tag_ids))
                )
            query = query.where(Task.id.in_(tagged))
        if criteria.date_from is not None:
            query = query.where(Task.due_date >= criteria.date_from)
        if criteria.date_to is not None:
            query = query.where(Task.due_date <= criteria.date_to)

        sort_column = {
            "created_at": Task.created_at,
            "due_date": Task.due_date,
            "title": func.lower(Task.title),
            "priority": _PRIORITY_ORDER,
        }[criteria.sort_by]
        ordering = sort_column.asc() if criteria.sort_order == "asc" else sort_column.desc()
        return await self._all(query.order_by(ordering, Task.id))
