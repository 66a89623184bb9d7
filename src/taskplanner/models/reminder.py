"""Reminders fire at a fixed time for a task."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, enum_type, task_fk


class ReminderType(str, Enum):
    EMAIL = "email"
    PUSH = "push"


class Reminder(TimestampMixin, table=True):
    """Scheduled reminder.

    ``sent`` is set by the dispatch job; ``delivered_at`` records that the
    browser acknowledged a push notification.
    """

    __tablename__ = "reminders"
    __table_args__ = (sa.Index("ix_reminders_sent_time", "sent", "time"),)

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(sa_column=task_fk(index=True))
    type: ReminderType = Field(
        sa_column=sa.Column(
            enum_type(ReminderType, "reminder_type"),
            nullable=False,
        ),
    )
    time: datetime = Field(sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False))
    sent: bool = Field(
        default=False,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    delivered_at: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=True),
    )


__all__ = ["Reminder", "ReminderType"]
