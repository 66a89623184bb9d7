"""Password hashing, credential validation and JWT session tokens."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_address
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


@dataclass(slots=True)
class GeneratedToken:
    """A signed session token with its identifier and expiry."""

    token: str
    expires_at: datetime
    jti: str


@dataclass(slots=True)
class SessionClaims:
    """Claims carried by a verified session token."""

    user_id: int
    username: str
    jti: str
    expires_at: datetime


def get_password_hash(password: str, *, rounds: int | None = None) -> str:
    """Return a bcrypt hash of ``password``."""

    if rounds is None:
        return pwd_context.hash(password)
    return pwd_context.handler("bcrypt").using(rounds=rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hashed counterpart."""

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def validate_username(username: str | None) -> str | None:
    """Return an error message for an unacceptable username, else ``None``."""

    if not username or len(username) < USERNAME_MIN_LENGTH:
        return f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
    if len(username) > USERNAME_MAX_LENGTH:
        return f"Username must be less than {USERNAME_MAX_LENGTH} characters"
    if not USERNAME_PATTERN.match(username):
        return "Username can only contain letters, numbers, and underscores"
    return None


def validate_password(password: str | None) -> str | None:
    """Return an error message for an unacceptable password, else ``None``."""

    if not password or len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    if len(password) > PASSWORD_MAX_LENGTH:
        return f"Password must be less than {PASSWORD_MAX_LENGTH} characters"
    return None


def validate_email(email: str | None) -> str | None:
    """Validate an optional email address."""

    if not email:
        return None
    try:
        check_email_address(email, check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email format"
    return None


def create_session_token(
    *,
    user_id: int,
    username: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Sign a session token carrying ``userId`` and ``username`` claims."""

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.session_max_age)
    expire = now + expires_delta
    jti = uuid4().hex
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "userId": user_id,
        "username": username,
        "iat": now,
        "exp": expire,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire, jti=jti)


def decode_session_token(token: str, settings: Settings) -> SessionClaims | None:
    """Verify a session token, returning ``None`` if it is invalid or expired."""

    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return None
    except JWTError:
        return None

    user_id = payload.get("userId")
    username = payload.get("username")
    jti = payload.get("jti")
    exp = payload.get("exp")
    if user_id is None or not username or not jti or exp is None:
        return None
    try:
        return SessionClaims(
            user_id=int(user_id),
            username=str(username),
            jti=str(jti),
            expires_at=datetime.fromtimestamp(int(exp), tz=timezone.utc),
        )
    except (TypeError, ValueError):
        return None


def generate_reset_token() -> str:
    """Return a URL-safe random token for password resets."""

    return secrets.token_urlsafe(24)


def reset_token_expiration(settings: Settings, *, now: datetime | None = None) -> datetime:
    """Return when a freshly issued reset token stops being valid."""

    current = now or datetime.now(timezone.utc)
    return current + timedelta(minutes=settings.password_reset_ttl_minutes)


__all__ = [
    "GeneratedToken",
    "SessionClaims",
    "create_session_token",
    "decode_session_token",
    "generate_reset_token",
    "get_password_hash",
    "reset_token_expiration",
    "validate_email",
    "validate_password",
    "validate_username",
    "verify_password",
]
