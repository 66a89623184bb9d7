"""Subtasks form a tree hanging off a task."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, task_fk


class Subtask(TimestampMixin, table=True):
    """Checklist item; ``parent_id`` nests it under another subtask."""

    __tablename__ = "subtasks"
    __table_args__ = (sa.Index("ix_subtasks_task_parent", "task_id", "parent_id"),)

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(sa_column=task_fk())
    parent_id: int | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("subtasks.id", ondelete="CASCADE"),
            nullable=True,
        ),
    )
    title: str = Field(max_length=255, sa_column=sa.Column(sa.String(length=255), nullable=False))
    completed: bool = Field(
        default=False,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    position: int = Field(default=0, sa_column=sa.Column(sa.Integer(), nullable=False, server_default="0"))


__all__ = ["Subtask"]
