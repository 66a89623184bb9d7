"""Database session management utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import get_settings


def enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    """Turn on ``PRAGMA foreign_keys`` for every new SQLite connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_pragma(dbapi_connection: Any, _: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str, *, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    """Create an async engine, enabling cascades on SQLite."""

    if database_url.startswith("sqlite"):
        created = create_async_engine(database_url, echo=echo, **kwargs)
        enable_sqlite_foreign_keys(created.sync_engine)
        return created
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True, **kwargs)


settings = get_settings()

engine: AsyncEngine = build_engine(settings.database_url, echo=settings.db_echo)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` for request-scoped work."""

    async with async_session_maker() as session:
        yield session


__all__ = ["async_session_maker", "build_engine", "enable_sqlite_foreign_keys", "engine", "get_session"]
