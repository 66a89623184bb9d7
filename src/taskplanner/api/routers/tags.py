"""Routes handling tags and task tagging."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...schemas import TagCreate, TagRead, TagUpdate, TaskRead, TaskTagsReplace
from ...services import TagService, TaskService

router = APIRouter(tags=["tags"])


@router.get("/tags", response_model=list[TagRead], summary="List tags")
async def list_tags(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TagRead]:
    return [TagRead.model_validate(tag) for tag in await TagService(session).list_tags(current_user.id)]


@router.post("/tags", response_model=TagRead, status_code=status.HTTP_201_CREATED, summary="Create a tag")
async def create_tag(
    payload: TagCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TagRead:
    tag = await TagService(session).create_tag(current_user.id, name=payload.name, color=payload.color)
    return TagRead.model_validate(tag)


@router.get("/tags/{tag_id}", response_model=TagRead, summary="Retrieve a tag")
async def get_tag(
    tag_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TagRead:
    return TagRead.model_validate(await TagService(session).require_tag(tag_id, current_user.id))


@router.patch("/tags/{tag_id}", response_model=TagRead, summary="Rename or recolor a tag")
async def update_tag(
    tag_id: int,
    payload: TagUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TagRead:
    tag = await TagService(session).update_tag(tag_id, current_user.id, name=payload.name, color=payload.color)
    return TagRead.model_validate(tag)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a tag")
async def delete_tag(
    tag_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await TagService(session).delete_tag(tag_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/tags/{tag_id}/tasks", response_model=list[TaskRead], summary="List tasks carrying a tag")
async def list_tag_tasks(
    tag_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    tasks = await TagService(session).list_tasks_for_tag(tag_id, current_user.id)
    return await TaskService(session).to_read(tasks)


@router.get("/tasks/{task_id}/tags", response_model=list[TagRead], summary="List a task's tags")
async def list_task_tags(
    task_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TagRead]:
    tags = await TagService(session).list_task_tags(task_id, current_user.id)
    return [TagRead.model_validate(tag) for tag in tags]


@router.put("/tasks/{task_id}/tags", response_model=list[TagRead], summary="Replace a task's tags")
async def replace_task_tags(
    task_id: int,
    payload: TaskTagsReplace,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TagRead]:
    tags = await TagService(session).set_task_tags(task_id, payload.tag_ids, current_user.id)
    return [TagRead.model_validate(tag) for tag in tags]


@router.post("/tasks/{task_id}/tags/{tag_id}", response_model=list[TagRead], summary="Attach a tag to a task")
async def add_task_tag(
    task_id: int,
    tag_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TagRead]:
    tags = await TagService(session).add_tag_to_task(task_id, tag_id, current_user.id)
    return [TagRead.model_validate(tag) for tag in tags]


@router.delete("/tasks/{task_id}/tags/{tag_id}", response_model=list[TagRead], summary="Detach a tag from a task")
async def remove_task_tag(
    task_id: int,
    tag_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TagRead]:
    tags = await TagService(session).remove_tag_from_task(task_id, tag_id, current_user.id)
    return [TagRead.model_validate(tag) for tag in tags]


__all__ = ["router"]
