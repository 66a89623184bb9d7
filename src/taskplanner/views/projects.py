from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message
from ..core.templates import template_response
from ..deps import AuthenticatedSessionUserDependency, DatabaseSessionDependency
from ..errors import ApplicationError
from ..models import DEFAULT_PROJECT_COLOR, TaskPriority, TaskStatus
from ..services import ProjectService, TagService, TaskService
from .forms import clean_text, csrf_rejected, redirect_to

router = APIRouter(tags=["projects"])


@router.get("", name="projects:list")
async def list_projects(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> object:
    service = ProjectService(session)
    return template_response(
        request,
        "projects/index.html",
        {
            "title": "Projects",
            "projects": await service.list_projects(current_user.id),
            "open_counts": await service.open_task_counts(current_user.id),
            "default_color": DEFAULT_PROJECT_COLOR,
        },
    )


@router.post("", name="projects:create")
async def create_project(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "projects:list")
    try:
        project = await ProjectService(session).create_project(
            current_user.id,
            name=clean_text(form.get("name")),
            description=clean_text(form.get("description")) or None,
            color=clean_text(form.get("color")) or None,
            emoji=clean_text(form.get("emoji")) or None,
        )
    except ApplicationError as exc:
        add_flash_message(request.session, "error", exc.message)
        return redirect_to(request, "projects:list")
    add_flash_message(request.session, "success", "Project created.")
    return redirect_to(request, "projects:detail", project_id=project.id)


@router.get("/{project_id}", name="projects:detail")
async def project_detail(
    project_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> object:
    service = ProjectService(session)
    project = await service.require_project(project_id, current_user.id)
    tasks = await service.list_project_tasks(project_id, current_user.id)
    return template_response(
        request,
        "projects/detail.html",
        {
            "title": project.name,
            "project": project,
            "tasks": await TaskService(session).to_read(tasks),
            "projects": await service.list_projects(current_user.id),
            "tags": await TagService(session).list_tags(current_user.id),
            "priorities": list(TaskPriority),
            "statuses": list(TaskStatus),
        },
    )


@router.post("/{project_id}/edit", name="projects:update")
async def update_project(
    project_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await ProjectService(session).update_project(
                project_id,
                current_user.id,
                name=clean_text(form.get("name")),
                description=clean_text(form.get("description")) or None,
                color=clean_text(form.get("color")) or None,
                emoji=clean_text(form.get("emoji")) or None,
            )
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
        else:
            add_flash_message(request.session, "success", "Project updated.")
    return redirect_to(request, "projects:detail", project_id=project_id)


@router.post("/{project_id}/delete", name="projects:delete")
async def delete_project(
    project_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "projects:detail", project_id=project_id)
    await ProjectService(session).delete_project(project_id, current_user.id)
    add_flash_message(request.session, "success", "Project deleted; its tasks moved to the inbox.")
    return redirect_to(request, "projects:list")
