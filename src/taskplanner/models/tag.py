"""Tags and their many-to-many link to tasks."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, owner_fk, task_fk

DEFAULT_TAG_COLOR = "#6b7280"


class Tag(TimestampMixin, table=True):
    """A label owned by one user; names are unique per owner."""

    __tablename__ = "tags"
    __table_args__ = (sa.UniqueConstraint("owner_id", "name", name="uq_tags_owner_name"),)

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(sa_column=owner_fk())
    name: str = Field(max_length=64, sa_column=sa.Column(sa.String(length=64), nullable=False))
    color: str = Field(
        default=DEFAULT_TAG_COLOR,
        sa_column=sa.Column(sa.String(length=32), nullable=False, server_default=DEFAULT_TAG_COLOR),
    )


class TaskTagLink(SQLModel, table=True):
    """Association row between a task and a tag."""

    __tablename__ = "task_tags"

    task_id: int = Field(sa_column=task_fk(primary_key=True))
    tag_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            nullable=False,
            primary_key=True,
        ),
    )


__all__ = ["DEFAULT_TAG_COLOR", "Tag", "TaskTagLink"]
