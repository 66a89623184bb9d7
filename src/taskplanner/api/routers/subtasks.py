"""Routes handling subtasks and the completion cascade."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...schemas import SubtaskCreate, SubtaskRead, SubtaskReorder, SubtaskToggleResult, SubtaskUpdate
from ...services import SubtaskService, TaskService

router = APIRouter(tags=["subtasks"])


@router.get("/tasks/{task_id}/subtasks", response_model=list[SubtaskRead], summary="List a task's subtasks")
async def list_subtasks(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[SubtaskRead]:
    subtasks = await SubtaskService(session).list_for_task(task_id, current_user.id)
    return [SubtaskRead.model_validate(item) for item in subtasks]


@router.post(
    "/tasks/{task_id}/subtasks",
    response_model=SubtaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Append a subtask",
)
async def create_subtask(
    task_id: int,
    payload: SubtaskCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SubtaskRead:
    subtask = await SubtaskService(session).create_subtask(
        task_id,
        current_user.id,
        title=payload.title,
        parent_id=payload.parent_id,
    )
    return SubtaskRead.model_validate(subtask)


@router.get("/subtasks/{subtask_id}/children", response_model=list[SubtaskRead], summary="List child subtasks")
async def list_children(
    subtask_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[SubtaskRead]:
    children = await SubtaskService(session).list_children(subtask_id, current_user.id)
    return [SubtaskRead.model_validate(item) for item in children]


@router.patch("/subtasks/{subtask_id}", response_model=SubtaskRead, summary="Rename a subtask")
async def update_subtask(
    subtask_id: int,
    payload: SubtaskUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SubtaskRead:
    subtask = await SubtaskService(session).update_subtask(subtask_id, current_user.id, title=payload.title)
    return SubtaskRead.model_validate(subtask)


@router.post(
    "/subtasks/{subtask_id}/toggle",
    response_model=SubtaskToggleResult,
    summary="Toggle a subtask, completing the task when all subtasks are done",
)
async def toggle_subtask(
    subtask_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> SubtaskToggleResult:
    outcome = await SubtaskService(session).toggle_subtask(subtask_id, current_user.id)
    task = None
    if outcome.completed_task is not None:
        task = await TaskService(session).to_read_one(outcome.completed_task)
    return SubtaskToggleResult(
        subtask=SubtaskRead.model_validate(outcome.subtask),
        task_completed=task is not None,
        task=task,
    )


@router.post("/subtasks/reorder", response_model=list[SubtaskRead], summary="Reorder sibling subtasks")
async def reorder_subtasks(
    payload: SubtaskReorder,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[SubtaskRead]:
    subtasks = await SubtaskService(session).reorder(current_user.id, payload.subtask_ids)
    return [SubtaskRead.model_validate(item) for item in subtasks]


@router.delete("/subtasks/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a subtask")
async def delete_subtask(
    subtask_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await SubtaskService(session).delete_subtask(subtask_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
