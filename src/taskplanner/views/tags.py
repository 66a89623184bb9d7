from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message
from ..core.templates import template_response
from ..deps import AuthenticatedSessionUserDependency, DatabaseSessionDependency
from ..errors import ApplicationError
from ..models import DEFAULT_TAG_COLOR
from ..services import TagService, TaskService
from .forms import clean_text, csrf_rejected, redirect_to

router = APIRouter(tags=["tags"])


@router.get("", name="tags:list")
async def list_tags(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> object:
    return template_response(
        request,
        "tags/index.html",
        {
            "title": "Tags",
            "tags": await TagService(session).list_tags(current_user.id),
            "default_color": DEFAULT_TAG_COLOR,
        },
    )


@router.post("", name="tags:create")
async def create_tag(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await TagService(session).create_tag(
                current_user.id,
                name=clean_text(form.get("name")),
                color=clean_text(form.get("color")) or None,
            )
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
        else:
            add_flash_message(request.session, "success", "Tag created.")
    return redirect_to(request, "tags:list")


@router.get("/{tag_id}", name="tags:detail")
async def tag_detail(
    tag_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> object:
    service = TagService(session)
    tag = await service.require_tag(tag_id, current_user.id)
    tasks = await service.list_tasks_for_tag(tag_id, current_user.id)
    return template_response(
        request,
        "tags/detail.html",
        {"title": f"#{tag.name}", "tag": tag, "tasks": await TaskService(session).to_read(tasks)},
    )


@router.post("/{tag_id}/edit", name="tags:update")
async def update_tag(
    tag_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await TagService(session).update_tag(
                tag_id,
                current_user.id,
                name=clean_text(form.get("name")) or None,
                color=clean_text(form.get("color")) or None,
            )
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
    return redirect_to(request, "tags:list")


@router.post("/{tag_id}/delete", name="tags:delete")
async def delete_tag(
    tag_id: int,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        await TagService(session).delete_tag(tag_id, current_user.id)
        add_flash_message(request.session, "success", "Tag deleted.")
    return redirect_to(request, "tags:list")
