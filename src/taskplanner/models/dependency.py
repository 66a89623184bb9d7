"""Directed "must finish before" edges between tasks."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import task_fk, utcnow


class TaskDependency(SQLModel, table=True):
    """``task_id`` cannot be completed until ``depends_on_task_id`` is done."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        sa.UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependencies_pair"),
        sa.CheckConstraint("task_id <> depends_on_task_id", name="ck_task_dependencies_not_self"),
    )

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(sa_column=task_fk(index=True))
    depends_on_task_id: int = Field(sa_column=task_fk(index=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


__all__ = ["TaskDependency"]
