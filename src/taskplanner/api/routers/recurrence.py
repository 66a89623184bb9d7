"""Routes handling a task's recurrence rule."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...errors import NotFoundError
from ...schemas import RecurrenceRead, RecurrenceUpdate, RecurrenceWrite
from ...services import RecurrenceService
from ...services.recurrence import to_read

router = APIRouter(prefix="/tasks/{task_id}/recurrence", tags=["recurrence"])


@router.get("", response_model=RecurrenceRead, summary="Retrieve the task's recurrence rule")
async def get_recurrence(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> RecurrenceRead:
    rule = await RecurrenceService(session).get_for_task(task_id, current_user.id)
    if rule is None:
        raise NotFoundError("Recurrence not found.", details={"task_id": task_id})
    return to_read(rule)


@router.post(
    "",
    response_model=RecurrenceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a recurrence rule to the task",
)
async def create_recurrence(
    task_id: int,
    payload: RecurrenceWrite,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> RecurrenceRead:
    rule = await RecurrenceService(session).create(task_id, current_user.id, **payload.model_dump())
    return to_read(rule)


@router.patch("", response_model=RecurrenceRead, summary="Update the task's recurrence rule")
async def update_recurrence(
    task_id: int,
    payload: RecurrenceUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> RecurrenceRead:
    rule = await RecurrenceService(session).update(
        task_id,
        current_user.id,
        **payload.model_dump(exclude_unset=True),
    )
    return to_read(rule)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Remove the task's recurrence rule")
async def delete_recurrence(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await RecurrenceService(session).delete(task_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
