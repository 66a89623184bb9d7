"""Service layer orchestrating user-related repository operations."""

from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings, get_settings
from ..core.security import get_password_hash, validate_email, validate_password, verify_password
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import User
from ..repositories import UserRepository


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._repository = UserRepository(session)

    @property
    def repository(self) -> UserRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    def hash_password(self, password: str) -> str:
        return get_password_hash(password, rounds=self._settings.bcrypt_rounds)

    async def create_user(
        self,
        *,
        username: str,
        password: str,
        email: str | None = None,
        full_name: str | None = None,
        is_active: bool = True,
    ) -> User:
        """Create and persist a new user record."""
        user = User(
            username=username,
            email=email or None,
            full_name=full_name,
            is_active=is_active,
            hashed_password=self.hash_password(password),
        )
        await self._repository.add(user)
        await self._session.commit()
        await self._repository.refresh(user)
        return user

    async def update_profile(
        self,
        user_id: int,
        *,
        full_name: str | None = None,
        email: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        """Update display fields; an empty email clears it."""
        user = await self._repository.get(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        if email is not None:
            cleaned = email.strip().lower()
            if cleaned:
                if message := validate_email(cleaned):
                    raise ValidationError(message, details={"field": "email"})
                existing = await self._repository.get_by_email(cleaned)
                if existing is not None and existing.id != user.id:
                    raise ConflictError("Email is already in use.", details={"field": "email"})
            user.email = cleaned or None
        if full_name is not None:
            user.full_name = full_name.strip() or None
        if avatar_url is not None:
            user.avatar_url = avatar_url.strip() or None
        await self._session.commit()
        await self._repository.refresh(user)
        return user

    async def change_password(self, user_id: int, *, current_password: str, new_password: str) -> User:
        user = await self._repository.get(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect.", details={"field": "current_password"})
        if message := validate_password(new_password):
            raise ValidationError(message, details={"field": "new_password"})
        user.hashed_password = self.hash_password(new_password)
        await self._session.commit()
        await self._repository.refresh(user)
        return user


__all__ = ["UserService"]
