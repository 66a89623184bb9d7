"""Authentication service: signup, login, sessions and password resets."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.security import (
    GeneratedToken,
    create_session_token,
    decode_session_token,
    generate_reset_token,
    reset_token_expiration,
    validate_email,
    validate_password,
    validate_username,
    verify_password,
)
from ..errors import AuthenticationError, ConflictError, ValidationError
from ..models import PasswordResetToken, User, UserSession, ensure_aware, utcnow
from ..repositories import PasswordResetTokenRepository, UserRepository, UserSessionRepository
from .mailer import EmailService
from .users import UserService

logger = logging.getLogger("taskplanner.services.auth")


@dataclass(slots=True)
class IssuedSession:
    """A signed-in user with the token to place in the session cookie."""

    user: User
    token: GeneratedToken


class AuthService:
    """High-level authentication workflows."""

    def __init__(self, session: AsyncSession, settings: Settings, email_service: EmailService | None = None) -> None:
        self._session = session
        self._settings = settings
        self._user_service = UserService(session, settings)
        self._user_repository = UserRepository(session)
        self._sessions = UserSessionRepository(session)
        self._reset_tokens = PasswordResetTokenRepository(session)
        self._email_service = email_service or EmailService(settings=settings)

    async def register_user(
        self,
        *,
        username: str,
        password: str,
        email: str | None = None,
        full_name: str | None = None,
    ) -> User:
        username = username.strip()
        email = (email or "").strip().lower() or None
        for field, message in (
            ("username", validate_username(username)),
            ("password", validate_password(password)),
            ("email", validate_email(email)),
        ):
            if message:
                raise ValidationError(message, details={"field": field})

        if await self._user_repository.get_by_username(username) is not None:
            raise ConflictError("Username already taken.", details={"field": "username"})
        if email and await self._user_repository.get_by_email(email) is not None:
            raise ConflictError("Email is already registered.", details={"field": "email"})

        user = await self._user_service.create_user(
            username=username,
            password=password,
            email=email,
            full_name=(full_name or "").strip() or None,
        )
        logger.info("Registered user %s", user.id, extra={"user_id": user.id})
        return user

    async def authenticate_user(self, username: str, password: str) -> User | None:
        user = await self._user_repository.get_by_username(username.strip())
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    async def start_session(self, user: User) -> IssuedSession:
        """Sign a session token for ``user`` and persist its ``jti``."""
        if user.id is None:
            raise AuthenticationError("User must be persisted before signing in.")
        token = create_session_token(user_id=user.id, username=user.username, settings=self._settings)
        self._session.add(UserSession(user_id=user.id, jti=token.jti, expires_at=token.expires_at))
        await self._session.commit()
        return IssuedSession(user=user, token=token)

    async def login(self, username: str, password: str) -> IssuedSession:
        user = await self.authenticate_user(username, password)
        if user is None:
            raise AuthenticationError("Invalid username or password.", code="invalid_credentials")
        return await self.start_session(user)

    async def resolve_session(self, token: str | None) -> User | None:
        """Return the user behind a session token, or ``None``."""
        if not token:
            return None
        claims = decode_session_token(token, self._settings)
        if claims is None:
            return None
        record = await self._sessions.get_by_jti(claims.jti)
        if record is None or record.revoked_at is not None:
            return None
        if ensure_aware(record.expires_at) <= utcnow():
            return None
        user = await self._user_repository.get(claims.user_id)
        if user is None or not user.is_active:
            return None
        return user

    async def logout(self, token: str | None) -> None:
        """Revoke the session behind ``token``; unknown tokens are ignored."""
        if not token:
            return
        claims = decode_session_token(token, self._settings)
        if claims is None:
            return
        record = await self._sessions.get_by_jti(claims.jti)
        if record is not None and record.revoked_at is None:
            record.revoked_at = utcnow()
            await self._session.commit()

    async def request_password_reset(self, username: str) -> PasswordResetToken | None:
        """Issue a reset token and email a link when the account has an email."""
        user = await self._user_repository.get_by_username(username.strip())
        if user is None or user.id is None:
            logger.info("Password reset requested for unknown account.")
            return None
        reset = PasswordResetToken(
            user_id=user.id,
            token=generate_reset_token(),
            expires_at=reset_token_expiration(self._settings),
        )
        await self._reset_tokens.add(reset)
        await self._session.commit()
        await self._reset_tokens.refresh(reset)

        reset_url = f"{self._settings.base_url.rstrip('/')}/auth/reset-password?token={reset.token}"
        if user.email:
            self._email_service.send_password_reset(to=user.email, username=user.username, reset_url=reset_url)
        else:
            logger.info("User %s has no email; reset link only logged.", user.id, extra={"reset_url": reset_url})
        return reset

    async def get_valid_reset_token(self, token: str) -> PasswordResetToken | None:
        record = await self._reset_tokens.get_by_token(token)
        if record is None or record.used:
            return None
        if ensure_aware(record.expires_at) <= utcnow():
            return None
        return record

    async def reset_password(self, token: str, new_password: str) -> User:
        record = await self.get_valid_reset_token(token)
        if record is None:
            raise ValidationError("Invalid or expired reset token.", code="invalid_reset_token")
        if message := validate_password(new_password):
            raise ValidationError(message, details={"field": "password"})
        user = await self._user_repository.get(record.user_id)
        if user is None:
            raise ValidationError("Invalid or expired reset token.", code="invalid_reset_token")

        user.hashed_password = self._user_service.hash_password(new_password)
        record.used = True
        await self._sessions.revoke_all_for_user(record.user_id, at=utcnow())
        await self._session.commit()
        await self._user_repository.refresh(user)
        logger.info("Password reset for user %s", user.id, extra={"user_id": user.id})
        return user


__all__ = ["AuthService", "IssuedSession"]
