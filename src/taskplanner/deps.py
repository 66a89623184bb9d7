"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings, get_settings
from .core.context import bind_log_fields
from .core.session import read_session_cookie
from .db.session import get_session
from .errors import AuthenticationError
from .models import User
from .services import AuthService

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session():
        yield session


SettingsDependency = Annotated[Settings, Depends(get_settings)]
DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def _request_token(request: Request, settings: Settings, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return read_session_cookie(request, settings)


async def get_optional_user(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)] = None,
) -> User | None:
    """Resolve the signed-in user from the session cookie or a bearer token."""

    token = _request_token(request, settings, credentials)
    user = await AuthService(session, settings).resolve_session(token)
    request.state.user = user
    if user is not None:
        bind_log_fields(owner_id=user.id)
    return user


async def require_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    if user is None or user.id is None:
        raise AuthenticationError()
    return user


SessionUserDependency = Annotated[User | None, Depends(get_optional_user)]
CurrentUserDependency = Annotated[User, Depends(require_current_user)]
AuthenticatedSessionUserDependency = CurrentUserDependency


__all__ = [
    "AuthenticatedSessionUserDependency",
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "SessionUserDependency",
    "SettingsDependency",
    "get_db_session",
    "get_optional_user",
    "require_current_user",
]
