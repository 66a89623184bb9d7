"""Routes handling tasks, agenda views and search."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Query, Response, status

from ...core.cache import (
    TASK_AGENDA_CACHE_NAMESPACE,
    TASK_LIST_CACHE_NAMESPACE,
    TASK_STATISTICS_CACHE_NAMESPACE,
    cache_get_or_set,
    owner_key,
)
from ...deps import CurrentUserDependency, DatabaseSessionDependency, SettingsDependency
from ...models import TaskPriority, TaskStatus
from ...repositories import TaskSearchCriteria
from ...schemas import (
    CompletedGroups,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskReorder,
    TaskSearchResponse,
    TaskStatistics,
    TaskUpdate,
    TodayAgenda,
    UpcomingAgenda,
)
from ...services import TaskService, describe_filters

router = APIRouter(prefix="/tasks", tags=["tasks"])

LimitQuery = Annotated[
    int,
    Query(ge=1, le=100, description="Maximum number of tasks to return in a single response."),
]
OffsetQuery = Annotated[
    int,
    Query(ge=0, description="Number of tasks to skip before collecting results."),
]
StatusQuery = Annotated[
    TaskStatus | None,
    Query(description="Filter results to tasks matching the supplied status."),
]
ProjectQuery = Annotated[
    int | None,
    Query(ge=1, description="Restrict results to one project."),
]


@router.get(
    "/",
    response_model=TaskListResponse,
    summary="List tasks with pagination and optional filtering",
)
async def list_tasks(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
    limit: LimitQuery = 20,
    offset: OffsetQuery = 0,
    status: StatusQuery = None,
    project_id: ProjectQuery = None,
) -> TaskListResponse:
    service = TaskService(session)
    owner_id = current_user.id

    async def _build_response() -> TaskListResponse:
        tasks, total = await service.list_tasks_paginated(
            owner_id=owner_id,
            status=status,
            project_id=project_id,
            limit=limit,
            offset=offset,
        )
        return TaskListResponse(
            items=await service.to_read(tasks),
            total=total,
            limit=limit,
            offset=offset,
        )

    status_fragment = status.value if status is not None else "all"
    project_fragment = project_id if project_id is not None else "all"
    cache_key = owner_key(
        owner_id,
        f"status={status_fragment}:project={project_fragment}:limit={limit}:offset={offset}",
    )
    return await cache_get_or_set(
        namespace=TASK_LIST_CACHE_NAMESPACE,
        key=cache_key,
        builder=_build_response,
        model=TaskListResponse,
    )


@router.get(
    "/statistics",
    response_model=TaskStatistics,
    summary="Aggregate task statistics",
)
async def get_task_statistics(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> TaskStatistics:
    service = TaskService(session, settings)

    async def _build_statistics() -> TaskStatistics:
        stats = await service.get_task_statistics(current_user.id)
        return TaskStatistics(
            owner_id=stats.owner_id,
            total=stats.total,
            by_status=stats.by_status,
            overdue=stats.overdue,
            due_today=stats.due_today,
            completed_today=stats.completed_today,
        )

    return await cache_get_or_set(
        namespace=TASK_STATISTICS_CACHE_NAMESPACE,
        key=owner_key(current_user.id),
        builder=_build_statistics,
        model=TaskStatistics,
    )


@router.get("/today", response_model=TodayAgenda, summary="Tasks due today, overdue and undated")
async def read_today(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> TodayAgenda:
    service = TaskService(session, settings)
    return await cache_get_or_set(
        namespace=TASK_AGENDA_CACHE_NAMESPACE,
        key=owner_key(current_user.id, "today"),
        builder=lambda: service.today_agenda(current_user.id),
        model=TodayAgenda,
    )


@router.get("/upcoming", response_model=UpcomingAgenda, summary="Open tasks grouped by due day")
async def read_upcoming(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> UpcomingAgenda:
    service = TaskService(session, settings)
    return await cache_get_or_set(
        namespace=TASK_AGENDA_CACHE_NAMESPACE,
        key=owner_key(current_user.id, "upcoming"),
        builder=lambda: service.upcoming_agenda(current_user.id),
        model=UpcomingAgenda,
    )


@router.get("/completed", response_model=CompletedGroups, summary="Done tasks grouped by completion day")
async def read_completed(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> CompletedGroups:
    service = TaskService(session, settings)
    return await cache_get_or_set(
        namespace=TASK_AGENDA_CACHE_NAMESPACE,
        key=owner_key(current_user.id, "completed"),
        builder=lambda: service.completed_groups(current_user.id),
        model=CompletedGroups,
    )


@router.get("/incomplete", response_model=list[TaskRead], summary="Inbox of open tasks")
async def read_incomplete(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    return await TaskService(session).inbox(current_user.id)


@router.get("/search", response_model=TaskSearchResponse, summary="Search and filter tasks")
async def search_tasks(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
    q: Annotated[str | None, Query(max_length=255)] = None,
    project_id: ProjectQuery = None,
    status: StatusQuery = None,
    priority: Annotated[TaskPriority | None, Query()] = None,
    tag_ids: Annotated[list[int] | None, Query()] = None,
    match_all_tags: bool = False,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort_by: Literal["created_at", "due_date", "title", "priority"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> TaskSearchResponse:
    criteria = TaskSearchCriteria(
        query=(q or "").strip() or None,
        project_id=project_id,
        status=status,
        priority=priority,
        tag_ids=list(tag_ids or []),
        match_all_tags=match_all_tags,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    service = TaskService(session)
    tasks = await service.search_tasks(current_user.id, criteria)
    return TaskSearchResponse(
        items=await service.to_read(tasks),
        total=len(tasks),
        summary=describe_filters(criteria),
    )


@router.post("/reorder", response_model=list[TaskRead], summary="Persist a new task order")
async def reorder_tasks(
    payload: TaskReorder,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    service = TaskService(session)
    tasks = await service.reorder_tasks(current_user.id, payload.task_ids)
    return await service.to_read(tasks)


@router.get("/{task_id}", response_model=TaskRead, summary="Retrieve a task by id")
async def get_task(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    service = TaskService(session)
    task = await service.require_task(task_id, current_user.id)
    return await service.to_read_one(task)


@router.post(
    "/",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    payload: TaskCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    service = TaskService(session)
    task = await service.create_task(owner_id=current_user.id, **payload.model_dump())
    return await service.to_read_one(task)


@router.patch("/{task_id}", response_model=TaskRead, summary="Update an existing task")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    service = TaskService(session)
    task = await service.update_task(task_id, current_user.id, **payload.model_dump(exclude_unset=True))
    return await service.to_read_one(task)


@router.post("/{task_id}/toggle", response_model=TaskRead, summary="Flip a task between done and todo")
async def toggle_task(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    service = TaskService(session)
    task = await service.toggle_task(task_id, current_user.id)
    return await service.to_read_one(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a task")
async def delete_task(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await TaskService(session).delete_task(task_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
