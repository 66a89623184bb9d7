"""Persistence for login sessions and password reset tokens."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import PasswordResetToken, UserSession
from .base import BaseRepository


class UserSessionRepository(BaseRepository[UserSession]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserSession)

    async def get_by_jti(self, jti: str) -> UserSession | None:
        return await self._first(select(UserSession).where(UserSession.jti == jti))

    async def revoke_all_for_user(self, user_id: int, *, at: datetime) -> None:
        await self.session.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.revoked_at.is_(None))
            .values(revoked_at=at)
        )


class PasswordResetTokenRepository(BaseRepository[PasswordResetToken]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PasswordResetToken)

    async def get_by_token(self, token: str) -> PasswordResetToken | None:
        return await self._first(select(PasswordResetToken).where(PasswordResetToken.token == token))
