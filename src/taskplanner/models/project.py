"""Projects group tasks under a named, coloured heading."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, owner_fk

DEFAULT_PROJECT_COLOR = "#3b82f6"


class ProjectBase(SQLModel, table=False):
    name: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    description: str | None = Field(default=None, sa_column=sa.Column(sa.Text(), nullable=True))
    color: str = Field(
        default=DEFAULT_PROJECT_COLOR,
        sa_column=sa.Column(sa.String(length=32), nullable=False, server_default=DEFAULT_PROJECT_COLOR),
    )
    emoji: str | None = Field(default=None, sa_column=sa.Column(sa.String(length=16), nullable=True))


class Project(ProjectBase, TimestampMixin, table=True):
    """Persistent project model."""

    __tablename__ = "projects"
    __table_args__ = (sa.CheckConstraint("length(name) > 0", name="ck_projects_name_length"),)

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(sa_column=owner_fk())
    position: int = Field(default=0, sa_column=sa.Column(sa.Integer(), nullable=False, server_default="0"))


__all__ = ["DEFAULT_PROJECT_COLOR", "Project", "ProjectBase"]
