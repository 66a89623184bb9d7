"""Database engine, session and metadata helpers."""

from __future__ import annotations

from .base import metadata
from .session import async_session_maker, engine, get_session

__all__ = ["async_session_maker", "engine", "get_session", "metadata"]
