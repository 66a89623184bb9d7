from __future__ import annotations

from fastapi import APIRouter, Request, status
from starlette.responses import RedirectResponse

from ..core.session import (
    add_flash_message,
    clear_session_cookie,
    read_session_cookie,
    reset_browser_state,
    set_session_cookie,
)
from ..core.templates import template_response
from ..deps import DatabaseSessionDependency, SessionUserDependency, SettingsDependency
from ..errors import ApplicationError
from ..services import AuthService
from .forms import clean_text, csrf_rejected, redirect_to

router = APIRouter(tags=["auth"])


def _form_page(request: Request, template: str, title: str, form: dict[str, str], errors: dict[str, str], *, status_code: int = 200) -> object:
    return template_response(
        request,
        template,
        {"title": title, "form": form, "errors": errors},
        status_code=status_code,
    )


@router.get("/login", name="auth:login")
async def login_form(request: Request, current_user: SessionUserDependency) -> object:
    """Render the login form."""

    if current_user is not None:
        return redirect_to(request, "tasks:inbox")
    return _form_page(request, "auth/login.html", "Sign in", {"username": ""}, {})


@router.post("/login", name="auth:login:submit")
async def login_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Handle login form submissions."""

    form = await request.form()
    username = clean_text(form.get("username"))
    password = str(form.get("password") or "")
    if csrf_rejected(request, form):
        return _form_page(
            request, "auth/login.html", "Sign in", {"username": username}, {}, status_code=status.HTTP_400_BAD_REQUEST
        )

    errors: dict[str, str] = {}
    if not username:
        errors["username"] = "Username is required."
    if not password:
        errors["password"] = "Password is required."

    if not errors:
        try:
            issued = await AuthService(session, settings).login(username, password)
        except ApplicationError as exc:
            errors["username"] = exc.message
        else:
            response = redirect_to(request, "tasks:inbox")
            set_session_cookie(response, issued.token.token, settings)
            add_flash_message(request.session, "success", f"Welcome back, {issued.user.username}!")
            return response

    return _form_page(
        request, "auth/login.html", "Sign in", {"username": username}, errors, status_code=status.HTTP_400_BAD_REQUEST
    )


@router.get("/register", name="auth:register")
async def register_form(request: Request, current_user: SessionUserDependency) -> object:
    """Render the registration form."""

    if current_user is not None:
        return redirect_to(request, "tasks:inbox")
    return _form_page(
        request,
        "auth/register.html",
        "Create an account",
        {"username": "", "email": "", "full_name": ""},
        {},
    )


@router.post("/register", name="auth:register:submit")
async def register_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Handle registration form submissions."""

    form = await request.form()
    values = {
        "username": clean_text(form.get("username")),
        "email": clean_text(form.get("email")).lower(),
        "full_name": clean_text(form.get("full_name")),
    }
    if csrf_rejected(request, form):
        return _form_page(
            request, "auth/register.html", "Create an account", values, {}, status_code=status.HTTP_400_BAD_REQUEST
        )

    password = str(form.get("password") or "")
    errors: dict[str, str] = {}
    if password != str(form.get("confirm_password") or ""):
        errors["confirm_password"] = "Passwords do not match."

    if not errors:
        service = AuthService(session, settings)
        try:
            user = await service.register_user(
                username=values["username"],
                password=password,
                email=values["email"] or None,
                full_name=values["full_name"] or None,
            )
            issued = await service.start_session(user)
        except ApplicationError as exc:
            field = exc.details.get("field", "username") if isinstance(exc.details, dict) else "username"
            errors[field] = exc.message
        else:
            response = redirect_to(request, "tasks:inbox")
            set_session_cookie(response, issued.token.token, settings)
            add_flash_message(request.session, "success", "Your account has been created.")
            return response

    return _form_page(
        request, "auth/register.html", "Create an account", values, errors, status_code=status.HTTP_400_BAD_REQUEST
    )


@router.post("/logout", name="auth:logout")
async def logout(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> RedirectResponse:
    """Revoke the session and clear the browser's cookies."""

    form = await request.form()
    if csrf_rejected(request, form):
        return redirect_to(request, "tasks:inbox")

    await AuthService(session, settings).logout(read_session_cookie(request, settings))
    reset_browser_state(request.session)
    add_flash_message(request.session, "info", "You have been signed out.")
    response = redirect_to(request, "auth:login")
    clear_session_cookie(response, settings)
    return response


@router.get("/forgot-password", name="auth:forgot_password")
async def forgot_password_form(request: Request) -> object:
    return _form_page(request, "auth/forgot_password.html", "Forgot password", {"username": ""}, {})


@router.post("/forgot-password", name="auth:forgot_password:submit")
async def forgot_password_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Always report success so the form cannot be used to probe accounts."""

    form = await request.form()
    username = clean_text(form.get("username"))
    if csrf_rejected(request, form):
        return redirect_to(request, "auth:forgot_password")
    if not username:
        return _form_page(
            request,
            "auth/forgot_password.html",
            "Forgot password",
            {"username": ""},
            {"username": "Username is required."},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await AuthService(session, settings).request_password_reset(username)
    add_flash_message(request.session, "info", "If an account exists, a password reset link has been sent.")
    return redirect_to(request, "auth:login")


@router.get("/reset-password", name="auth:reset_password")
async def reset_password_form(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    token: str = "",
) -> object:
    record = await AuthService(session, settings).get_valid_reset_token(token) if token else None
    if record is None:
        add_flash_message(request.session, "error", "This reset link is invalid or has expired.")
        return redirect_to(request, "auth:forgot_password")
    return _form_page(request, "auth/reset_password.html", "Choose a new password", {"token": token}, {})


@router.post("/reset-password", name="auth:reset_password:submit")
async def reset_password_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    form = await request.form()
    token = clean_text(form.get("token"))
    if csrf_rejected(request, form):
        return RedirectResponse(f"{request.url_for('auth:reset_password')}?token={token}", status_code=303)

    password = str(form.get("password") or "")
    errors: dict[str, str] = {}
    if password != str(form.get("confirm_password") or ""):
        errors["confirm_password"] = "Passwords do not match."
    if not errors:
        try:
            await AuthService(session, settings).reset_password(token, password)
        except ApplicationError as exc:
            errors["password"] = exc.message
        else:
            add_flash_message(request.session, "success", "Your password has been reset. Please sign in.")
            return redirect_to(request, "auth:login")

    return _form_page(
        request,
        "auth/reset_password.html",
        "Choose a new password",
        {"token": token},
        errors,
        status_code=status.HTTP_400_BAD_REQUEST,
    )
