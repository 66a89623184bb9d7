"""Recurrence rules attached to tasks."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, enum_type, task_fk


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Recurrence(TimestampMixin, table=True):
    """At most one rule per task.

    ``days_of_week`` is stored as a comma separated list of integers where
    0 is Sunday and 6 is Saturday.
    """

    __tablename__ = "recurrence"

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(sa_column=task_fk(unique=True))
    frequency: RecurrenceFrequency = Field(
        sa_column=sa.Column(
            enum_type(RecurrenceFrequency, "recurrence_frequency"),
            nullable=False,
        ),
    )
    interval: int = Field(default=1, sa_column=sa.Column(sa.Integer(), nullable=False, server_default="1"))
    days_of_week: str | None = Field(default=None, sa_column=sa.Column(sa.String(length=32), nullable=True))
    end_date: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=True),
    )

    @property
    def weekdays(self) -> list[int]:
        if not self.days_of_week:
            return []
        return [int(item) for item in self.days_of_week.split(",") if item.strip()]


__all__ = ["Recurrence", "RecurrenceFrequency"]
