"""Routes handling projects."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...models import Project
from ...schemas import ProjectCreate, ProjectRead, ProjectUpdate, TaskRead
from ...services import ProjectService, TaskService

router = APIRouter(prefix="/projects", tags=["projects"])


def _map_project(project: Project, open_tasks: int = 0) -> ProjectRead:
    read = ProjectRead.model_validate(project)
    read.open_tasks = open_tasks
    return read


@router.get("/", response_model=list[ProjectRead], summary="List projects with open task counts")
async def list_projects(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[ProjectRead]:
    service = ProjectService(session)
    counts = await service.open_task_counts(current_user.id)
    return [
        _map_project(project, counts.get(project.id, 0))
        for project in await service.list_projects(current_user.id)
    ]


@router.post(
    "/",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    payload: ProjectCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ProjectRead:
    project = await ProjectService(session).create_project(current_user.id, **payload.model_dump())
    return _map_project(project)


@router.get("/{project_id}", response_model=ProjectRead, summary="Retrieve a project")
async def get_project(
    project_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ProjectRead:
    service = ProjectService(session)
    project = await service.require_project(project_id, current_user.id)
    counts = await service.open_task_counts(current_user.id)
    return _map_project(project, counts.get(project.id, 0))


@router.get("/{project_id}/tasks", response_model=list[TaskRead], summary="List tasks in a project")
async def list_project_tasks(
    project_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    tasks = await ProjectService(session).list_project_tasks(project_id, current_user.id)
    return await TaskService(session).to_read(tasks)


@router.patch("/{project_id}", response_model=ProjectRead, summary="Update a project")
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ProjectRead:
    project = await ProjectService(session).update_project(
        project_id,
        current_user.id,
        **payload.model_dump(exclude_unset=True),
    )
    return _map_project(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project")
async def delete_project(
    project_id: int,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> Response:
    await ProjectService(session).delete_project(project_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
