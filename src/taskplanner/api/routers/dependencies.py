"""Routes handling task dependency edges."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...models import Task, TaskDependency
from ...schemas import CompletionCheck, DependencyCreate, DependencyRead, DependentRead, TaskSummary
from ...services import DependencyService

router = APIRouter(tags=["dependencies"])


def _summary(task: Task) -> TaskSummary:
    return TaskSummary.model_validate(task)


def _map_edge(edge: TaskDependency, target: Task | None = None) -> DependencyRead:
    read = DependencyRead.model_validate(edge)
    if target is not None:
        read.depends_on = _summary(target)
    return read


@router.post(
    "/tasks/{task_id}/dependencies",
    response_model=DependencyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Make a task depend on another task",
    responses={409: {"description": "Duplicate or circular dependency"}},
)
async def add_dependency(
    task_id: int,
    payload: DependencyCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> DependencyRead:
    edge = await DependencyService(session).add_dependency(
        task_id,
        payload.depends_on_task_id,
        owner_id=current_user.id,
    )
    return _map_edge(edge)


@router.get(
    "/tasks/{task_id}/dependencies",
    response_model=list[DependencyRead],
    summary="List the tasks this task depends on",
)
async def list_dependencies(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[DependencyRead]:
    rows = await DependencyService(session).list_dependencies(task_id, owner_id=current_user.id)
    return [_map_edge(edge, target) for edge, target in rows]


@router.get(
    "/tasks/{task_id}/dependents",
    response_model=list[DependentRead],
    summary="List the tasks waiting on this task",
)
async def list_dependents(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[DependentRead]:
    rows = await DependencyService(session).list_dependents(task_id, owner_id=current_user.id)
    return [
        DependentRead(
            id=edge.id,
            task_id=edge.task_id,
            depends_on_task_id=edge.depends_on_task_id,
            created_at=edge.created_at,
            task=_summary(task),
        )
        for edge, task in rows
    ]


@router.get(
    "/tasks/{task_id}/can-complete",
    response_model=CompletionCheck,
    summary="Report whether every dependency of the task is done",
)
async def can_complete(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> CompletionCheck:
    gate = await DependencyService(session).can_complete(task_id, owner_id=current_user.id)
    return CompletionCheck(
        can_complete=gate.can_complete,
        blocking_tasks=[_summary(task) for task in gate.blocking_tasks],
    )


@router.delete(
    "/dependencies/{dependency_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a dependency edge",
)
async def remove_dependency(
    dependency_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await DependencyService(session).remove_dependency(dependency_id, owner_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
