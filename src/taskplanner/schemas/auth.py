"""Schemas describing authentication payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .user import UserPublic


class SignupRequest(BaseModel):
    """Incoming payload for registering a new user.

    Length and character rules are enforced by the auth service so that the
    API and the HTML forms report the same messages.
    """

    username: str
    password: str
    email: str | None = None
    full_name: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionToken(BaseModel):
    """Signed session token, also set as the ``session`` cookie."""

    access_token: str
    token_type: str = Field(default="bearer", frozen=True)
    expires_at: datetime


class AuthResponse(BaseModel):
    """Authentication response containing the session and user metadata."""

    user: UserPublic
    session: SessionToken


class ForgotPasswordRequest(BaseModel):
    username: str


class ForgotPasswordResponse(BaseModel):
    """Always successful, so callers cannot probe for accounts."""

    success: bool = True
    message: str = "If an account exists, a password reset link has been sent."


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


__all__ = [
    "AuthResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "LoginRequest",
    "ResetPasswordRequest",
    "SessionToken",
    "SignupRequest",
]
