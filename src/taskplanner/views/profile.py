from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message
from ..core.templates import template_response
from ..deps import AuthenticatedSessionUserDependency, DatabaseSessionDependency, SettingsDependency
from ..errors import ApplicationError
from ..services import UserService
from .forms import clean_text, csrf_rejected, redirect_to

router = APIRouter(tags=["profile"])


@router.get("", name="profile:show")
async def show_profile(request: Request, current_user: AuthenticatedSessionUserDependency) -> object:
    return template_response(request, "profile/index.html", {"title": "Profile", "user": current_user})


@router.post("", name="profile:update")
async def update_profile(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        try:
            await UserService(session, settings).update_profile(
                current_user.id,
                full_name=clean_text(form.get("full_name")),
                email=clean_text(form.get("email")),
                avatar_url=clean_text(form.get("avatar_url")),
            )
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
        else:
            add_flash_message(request.session, "success", "Profile updated.")
    return redirect_to(request, "profile:show")


@router.post("/password", name="profile:password")
async def change_password(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    form = await request.form()
    if not csrf_rejected(request, form):
        new_password = str(form.get("new_password") or "")
        if new_password != str(form.get("confirm_password") or ""):
            add_flash_message(request.session, "error", "Passwords do not match.")
            return redirect_to(request, "profile:show")
        try:
            await UserService(session, settings).change_password(
                current_user.id,
                current_password=str(form.get("current_password") or ""),
                new_password=new_password,
            )
        except ApplicationError as exc:
            add_flash_message(request.session, "error", exc.message)
        else:
            add_flash_message(request.session, "success", "Password changed.")
    return redirect_to(request, "profile:show")
