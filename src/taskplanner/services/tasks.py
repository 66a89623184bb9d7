"""Service layer encapsulating task-related operations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.cache import invalidate_task_cache
from ..core.config import Settings, get_settings
from ..errors import DependencyBlockedError, NotFoundError, ValidationError
from ..models import Tag, Task, TaskPriority, TaskStatus, as_utc, utcnow
from ..repositories import (
    ProjectRepository,
    SubtaskRepository,
    TagRepository,
    TaskRepository,
    TaskSearchCriteria,
)
from ..schemas import (
    AgendaDay,
    CompletedGroups,
    TagRead,
    TaskRead,
    TodayAgenda,
    UpcomingAgenda,
)
from . import agenda
from .dependencies import DependencyService

logger = logging.getLogger("taskplanner.services.tasks")

_NULLABLE_FIELDS = frozenset({"description", "project_id", "due_date", "start_date"})
_DATETIME_FIELDS = frozenset({"due_date", "start_date"})


@dataclass(slots=True)
class TaskStatisticsResult:
    """Aggregate statistics for one owner's tasks."""

    owner_id: int
    total: int
    by_status: dict[str, int]
    overdue: int
    due_today: int
    completed_today: int


def describe_filters(criteria: TaskSearchCriteria) -> str:
    """Human-readable summary of active search filters."""
    parts: list[str] = []
    if criteria.query:
        parts.append(f'"{criteria.query}"')
    if criteria.status is not None:
        parts.append(criteria.status.value.replace("_", " "))
    if criteria.priority is not None:
        parts.append(f"{criteria.priority.value} priority")
    if criteria.tag_ids:
        count = len(criteria.tag_ids)
        parts.append(f"{count} tag{'s' if count != 1 else ''}")
    if criteria.date_from is not None or criteria.date_to is not None:
        parts.append("date range")
    return ", ".join(parts) if parts else "All tasks"


class TaskService:
    """High-level business orchestration for ``Task`` entities."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._repository = TaskRepository(session)
        self._projects = ProjectRepository(session)
        self._tags = TagRepository(session)
        self._subtasks = SubtaskRepository(session)
        self._dependencies = DependencyService(session)

    async def invalidate_cache(self, owner_id: int) -> None:
        await invalidate_task_cache(owner_id)

    async def require_task(self, task_id: int, owner_id: int) -> Task:
        """Return the owner's task or raise ``NotFoundError``."""
        task = await self._repository.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found.", details={"task_id": task_id})
        return task

    async def _check_project(self, project_id: int | None, owner_id: int) -> None:
        if project_id is None:
            return
        if await self._projects.get_for_owner(project_id, owner_id) is None:
            raise NotFoundError("Project not found.", details={"project_id": project_id})

    async def _resolve_tags(self, owner_id: int, tag_ids: Sequence[int]) -> list[Tag]:
        unique_ids = list(dict.fromkeys(tag_ids))
        tags = await self._tags.list_by_ids(owner_id, unique_ids)
        if len(tags) != len(unique_ids):
            raise NotFoundError("Tag not found.", details={"tag_ids": unique_ids})
        return tags

    async def _set_status(self, task: Task, status: TaskStatus) -> None:
        """Apply a status change, maintaining ``completed_at``."""
        if status == task.status:
            return
        if status == TaskStatus.DONE:
            if self._settings.enforce_dependency_gate and task.id is not None:
                blockers = await self._dependencies.blocking_tasks(task.id)
                if blockers:
                    raise DependencyBlockedError(
                        details={"blocking_task_ids": [blocker.id for blocker in blockers]},
                    )
            task.completed_at = utcnow()
        else:
            task.completed_at = None
        task.status = status

    async def to_read(self, tasks: Sequence[Task]) -> list[TaskRead]:
        """Convert tasks to ``TaskRead`` with tags and subtask progress."""
        ids = [task.id for task in tasks if task.id is not None]
        tags = await self._tags.list_for_tasks(ids)
        progress = await self._subtasks.completion_counts(ids)
        items: list[TaskRead] = []
        for task in tasks:
            done, total = progress.get(task.id or 0, (0, 0))
            read = TaskRead.model_validate(task)
            read.tags = [TagRead.model_validate(tag) for tag in tags.get(task.id or 0, [])]
            read.subtasks_completed = done
            read.subtasks_total = total
            items.append(read)
        return items

    async def to_read_one(self, task: Task) -> TaskRead:
        return (await self.to_read([task]))[0]

    async def create_task(
        self,
        *,
        owner_id: int,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.TODO,
        project_id: int | None = None,
        due_date: datetime | None = None,
        start_date: datetime | None = None,
        tag_ids: Sequence[int] = (),
    ) -> Task:
        """Create a new task belonging to the specified owner."""
        title = title.strip()
        if not title:
            raise ValidationError("Title is required.", details={"field": "title"})
        await self._check_project(project_id, owner_id)
        tags = await self._resolve_tags(owner_id, tag_ids)

        task = Task(
            owner_id=owner_id,
            title=title,
            description=description or None,
            priority=priority,
            status=status,
            project_id=project_id,
            due_date=as_utc(due_date),
            start_date=as_utc(start_date),
            completed_at=utcnow() if status == TaskStatus.DONE else None,
            position=await self._repository.max_position(owner_id) + 1,
        )
        await self._repository.add(task)
        for tag in tags:
            await self._tags.add_link(task.id, tag.id)
        await self._session.commit()
        await self._repository.refresh(task)
        await self.invalidate_cache(owner_id)
        logger.info("Created task %s", task.id, extra={"owner_id": owner_id, "task_id": task.id})
        return task

    async def list_tasks_for_owner(self, owner_id: int) -> list[Task]:
        return await self._repository.list_for_owner(owner_id)

    async def list_incomplete(self, owner_id: int) -> list[Task]:
        return await self._repository.list_incomplete(owner_id)

    async def list_completed(self, owner_id: int) -> list[Task]:
        return await self._repository.list_completed(owner_id)

    async def list_tasks_paginated(
        self,
        *,
        owner_id: int,
        status: TaskStatus | None = None,
        project_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        return await self._repository.list_paginated(
            owner_id=owner_id,
            status=status,
            project_id=project_id,
            limit=limit,
            offset=offset,
        )

    async def get_task_statistics(self, owner_id: int, *, now: datetime | None = None) -> TaskStatisticsResult:
        counts = await self._repository.count_by_status(owner_id)
        by_status = {status.value: counts.get(status, 0) for status in TaskStatus}
        tasks = await self._repository.list_for_owner(owner_id)
        current = now or utcnow()
        zone = self._settings.tzinfo
        return TaskStatisticsResult(
            owner_id=owner_id,
            total=sum(by_status.values()),
            by_status=by_status,
            overdue=len(agenda.overdue(tasks, current, zone)),
            due_today=len(agenda.due_today(tasks, current, zone)),
            completed_today=agenda.completed_on_day(tasks, current, zone),
        )

    async def update_task(
        self,
        task_id: int,
        owner_id: int,
        *,
        tag_ids: Sequence[int] | None = None,
        **updates: Any,
    ) -> Task:
        """Apply partial updates; ``None`` clears nullable fields.

        ``tag_ids`` replaces the tag set in the same commit. Unknown tags
        reject the whole update.
        """
        task = await self.require_task(task_id, owner_id)
        if "project_id" in updates:
            await self._check_project(updates["project_id"], owner_id)
        tags = await self._resolve_tags(owner_id, tag_ids) if tag_ids is not None else None
        status = updates.pop("status", None)

        for name, value in updates.items():
            if value is None and name not in _NULLABLE_FIELDS:
                continue
            if name == "title":
                value = value.strip()
                if not value:
                    raise ValidationError("Title is required.", details={"field": "title"})
            if name in _DATETIME_FIELDS:
                value = as_utc(value)
            setattr(task, name, value)
        if status is not None:
            await self._set_status(task, TaskStatus(status))
        if tags is not None:
            await self._tags.clear_links(task.id)
            for tag in tags:
                await self._tags.add_link(task.id, tag.id)

        await self._session.commit()
        await self._repository.refresh(task)
        await self.invalidate_cache(owner_id)
        return task

    async def toggle_task(self, task_id: int, owner_id: int) -> Task:
        """Flip between ``done`` and ``todo``."""
        task = await self.require_task(task_id, owner_id)
        target = TaskStatus.TODO if task.status == TaskStatus.DONE else TaskStatus.DONE
        await self._set_status(task, target)
        await self._session.commit()
        await self._repository.refresh(task)
        await self.invalidate_cache(owner_id)
        return task

    async def mark_done(self, task_id: int, owner_id: int) -> Task | None:
        """Complete a task unless it is already done; return it when changed."""
        task = await self.require_task(task_id, owner_id)
        if task.status == TaskStatus.DONE:
            return None
        await self._set_status(task, TaskStatus.DONE)
        await self._session.commit()
        await self._repository.refresh(task)
        await self.invalidate_cache(owner_id)
        return task

    async def reorder_tasks(self, owner_id: int, task_ids: Sequence[int]) -> list[Task]:
        tasks = {task.id: task for task in await self._repository.list_by_ids(owner_id, list(task_ids))}
        if len(tasks) != len(set(task_ids)):
            raise NotFoundError("Task not found.", details={"task_ids": list(task_ids)})
        for position, task_id in enumerate(task_ids):
            tasks[task_id].position = position
        await self._session.commit()
        await self.invalidate_cache(owner_id)
        return [tasks[task_id] for task_id in task_ids]

    async def delete_task(self, task_id: int, owner_id: int) -> None:
        """Delete a task; subtasks, tags links, reminders and edges cascade."""
        task = await self.require_task(task_id, owner_id)
        await self._repository.delete(task)
        await self._session.commit()
        await self.invalidate_cache(owner_id)

    async def search_tasks(self, owner_id: int, criteria: TaskSearchCriteria) -> list[Task]:
        if criteria.date_from is not None:
            criteria.date_from = as_utc(criteria.date_from)
        if criteria.date_to is not None:
            criteria.date_to = as_utc(criteria.date_to)
        return await self._repository.search(owner_id, criteria)

    async def _read_map(self, tasks: Sequence[Task]) -> dict[int, TaskRead]:
        return {read.id: read for read in await self.to_read(tasks)}

    async def today_agenda(self, owner_id: int, *, now: datetime | None = None) -> TodayAgenda:
        """Due today, overdue and undated open tasks plus today's completions."""
        tasks = await self._repository.list_for_owner(owner_id)
        current = now or utcnow()
        zone = self._settings.tzinfo
        reads = await self._read_map(tasks)
        return TodayAgenda(
            today=[reads[task.id] for task in agenda.due_today(tasks, current, zone)],
            overdue=[reads[task.id] for task in agenda.overdue(tasks, current, zone)],
            no_due_date=[reads[task.id] for task in agenda.without_due_date(tasks)],
            completed_today=agenda.completed_on_day(tasks, current, zone),
        )

    async def upcoming_agenda(self, owner_id: int, *, now: datetime | None = None) -> UpcomingAgenda:
        tasks = await self._repository.list_incomplete(owner_id)
        current = now or utcnow()
        zone = self._settings.tzinfo
        today = agenda.local_day(current, zone)
        reads = await self._read_map(tasks)
        groups = agenda.upcoming(tasks, current, zone)
        return UpcomingAgenda(
            days=[
                AgendaDay(
                    day=day,
                    label=agenda.day_label(day, today),
                    tasks=[reads[task.id] for task in items],
                )
                for day, items in groups.items()
            ]
        )

    async def completed_groups(self, owner_id: int, *, now: datetime | None = None) -> CompletedGroups:
        tasks = await self._repository.list_completed(owner_id)
        buckets = agenda.group_completed(tasks, now or utcnow(), self._settings.tzinfo)
        reads = await self._read_map(tasks)
        return CompletedGroups(
            today=[reads[task.id] for task in buckets.today],
            yesterday=[reads[task.id] for task in buckets.yesterday],
            this_week=[reads[task.id] for task in buckets.this_week],
            older=[reads[task.id] for task in buckets.older],
        )

    async def inbox(self, owner_id: int) -> list[TaskRead]:
        return await self.to_read(agenda.inbox(await self._repository.list_incomplete(owner_id)))


__all__ = ["TaskService", "TaskStatisticsResult", "describe_filters"]
