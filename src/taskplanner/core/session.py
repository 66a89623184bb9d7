"""Browser session helpers.

Two cookies are involved. The authentication cookie (``session`` by default)
holds the signed JWT issued at login. The Starlette session cookie, signed by
``SessionMiddleware``, only carries the CSRF token and queued flash messages.
"""

from __future__ import annotations

import secrets
from typing import Any, MutableMapping

from starlette.requests import Request
from starlette.responses import Response

from .config import Settings

SESSION_CSRF_KEY = "csrf_token"
SESSION_FLASH_KEY = "flash_messages"


def read_session_cookie(request: Request, settings: Settings) -> str | None:
    """Return the raw authentication token sent by the browser."""

    token = request.cookies.get(settings.session_cookie_name)
    return token or None


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the authentication cookie to ``response``."""

    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Expire the authentication cookie."""

    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def reset_browser_state(session: MutableMapping[str, Any]) -> None:
    """Drop CSRF and flash state, e.g. on sign out."""

    session.pop(SESSION_CSRF_KEY, None)
    session.pop(SESSION_FLASH_KEY, None)


def ensure_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return a CSRF token, generating one if necessary."""

    token = session.get(SESSION_CSRF_KEY)
    if isinstance(token, str) and token:
        return token
    token = secrets.token_urlsafe(32)
    session[SESSION_CSRF_KEY] = token
    return token


def validate_csrf_token(session: MutableMapping[str, Any], provided: object) -> bool:
    """Validate a CSRF token against the value stored in the session."""

    expected = session.get(SESSION_CSRF_KEY)
    if not expected or not provided:
        return False
    return secrets.compare_digest(str(expected), str(provided))


def add_flash_message(session: MutableMapping[str, Any], category: str, message: str) -> None:
    """Store a one-time flash message in the session."""

    queued = session.get(SESSION_FLASH_KEY)
    if not isinstance(queued, list):
        queued = []
    queued.append({"category": category, "message": message})
    session[SESSION_FLASH_KEY] = queued


def pop_flash_messages(session: MutableMapping[str, Any]) -> list[dict[str, str]]:
    """Retrieve and clear any queued flash messages from the session."""

    messages = session.pop(SESSION_FLASH_KEY, [])
    if not isinstance(messages, list):
        return []
    cleaned: list[dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            continue
        message = str(item.get("message", ""))
        if message:
            cleaned.append({"category": str(item.get("category", "info")), "message": message})
    return cleaned


__all__ = [
    "SESSION_CSRF_KEY",
    "SESSION_FLASH_KEY",
    "add_flash_message",
    "clear_session_cookie",
    "ensure_csrf_token",
    "pop_flash_messages",
    "read_session_cookie",
    "reset_browser_state",
    "set_session_cookie",
    "validate_csrf_token",
]
