"""Routes handling authentication and the signed-in user's profile."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from ...core.config import Settings
from ...core.session import clear_session_cookie, read_session_cookie, set_session_cookie
from ...deps import CurrentUserDependency, DatabaseSessionDependency, SettingsDependency
from ...models import User
from ...schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    PasswordChange,
    ProfileUpdate,
    ResetPasswordRequest,
    SessionToken,
    SignupRequest,
    UserPublic,
)
from ...services import AuthService, IssuedSession, UserService

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_user(user: User) -> UserPublic:
    return UserPublic.model_validate(user)


def _auth_response(issued: IssuedSession, response: Response, settings: Settings) -> AuthResponse:
    set_session_cookie(response, issued.token.token, settings)
    return AuthResponse(
        user=_map_user(issued.user),
        session=SessionToken(access_token=issued.token.token, expires_at=issued.token.expires_at),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def signup(
    payload: SignupRequest,
    response: Response,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    service = AuthService(session, settings)
    user = await service.register_user(
        username=payload.username,
        password=payload.password,
        email=payload.email,
        full_name=payload.full_name,
    )
    issued = await service.start_session(user)
    return _auth_response(issued, response, settings)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate using username and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    issued = await AuthService(session, settings).login(payload.username, payload.password)
    return _auth_response(issued, response, settings)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke the current session",
)
async def logout(
    request: Request,
    response: Response,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> MessageResponse:
    token = read_session_cookie(request, settings)
    authorization = request.headers.get("authorization", "")
    if token is None and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    await AuthService(session, settings).logout(token)
    clear_session_cookie(response, settings)
    return MessageResponse(message="Signed out.")


@router.get("/me", response_model=UserPublic, summary="Return the signed-in user")
async def read_me(current_user: CurrentUserDependency) -> UserPublic:
    return _map_user(current_user)


@router.patch("/me", response_model=UserPublic, summary="Update the signed-in user's profile")
async def update_me(
    payload: ProfileUpdate,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> UserPublic:
    user = await UserService(session, settings).update_profile(
        current_user.id,
        **payload.model_dump(exclude_unset=True),
    )
    return _map_user(user)


@router.post("/me/password", response_model=MessageResponse, summary="Change the signed-in user's password")
async def change_password(
    payload: PasswordChange,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    current_user: CurrentUserDependency,
) -> MessageResponse:
    await UserService(session, settings).change_password(
        current_user.id,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return MessageResponse(message="Password updated.")


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    summary="Email a password reset link",
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> ForgotPasswordResponse:
    await AuthService(session, settings).request_password_reset(payload.username)
    return ForgotPasswordResponse()


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password using a reset token",
)
async def reset_password(
    payload: ResetPasswordRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> MessageResponse:
    await AuthService(session, settings).reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset.")


__all__ = ["router"]
