"""Shared model mixins and utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive timestamps (as returned by SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise a timestamp to UTC before it is stored or compared."""
    aware = ensure_aware(value)
    return aware.astimezone(timezone.utc) if aware is not None else None


class TimestampMixin(SQLModel, table=False):
    """Mixin that provides created/updated timestamp columns."""

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": utcnow,
        },
    )


def enum_type(enum_class: type[Enum], name: str) -> sa.Enum:
    """Non-native enum column type that persists member values."""
    return sa.Enum(
        enum_class,
        name=name,
        native_enum=False,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


def owner_fk() -> sa.Column:
    return sa.Column(
        sa.Integer(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def task_fk(**kwargs) -> sa.Column:
    return sa.Column(
        sa.Integer(),
        sa.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        **kwargs,
    )


__all__ = ["TimestampMixin", "as_utc", "enum_type", "ensure_aware", "owner_fk", "task_fk", "utcnow"]
