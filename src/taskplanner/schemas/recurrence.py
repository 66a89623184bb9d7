"""Recurrence schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import RecurrenceFrequency
from .types import UTCDatetime


def _check_weekdays(value: list[int] | None) -> list[int] | None:
    if value is None:
        return None
    if any(day < 0 or day > 6 for day in value):
        raise ValueError("days_of_week entries must be between 0 (Sunday) and 6 (Saturday).")
    return sorted(set(value))


class RecurrenceWrite(BaseModel):
    """Create or replace the recurrence rule of a task."""

    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1)
    days_of_week: list[int] | None = None
    end_date: UTCDatetime | None = None

    @field_validator("days_of_week")
    @classmethod
    def _validate_weekdays(cls, value: list[int] | None) -> list[int] | None:
        return _check_weekdays(value)


class RecurrenceUpdate(BaseModel):
    frequency: RecurrenceFrequency | None = None
    interval: int | None = Field(default=None, ge=1)
    days_of_week: list[int] | None = None
    end_date: UTCDatetime | None = None

    @field_validator("days_of_week")
    @classmethod
    def _validate_weekdays(cls, value: list[int] | None) -> list[int] | None:
        return _check_weekdays(value)


class RecurrenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    frequency: RecurrenceFrequency
    interval: int
    days_of_week: list[int] = Field(default_factory=list)
    end_date: UTCDatetime | None = None
    description: str = ""


__all__ = ["RecurrenceRead", "RecurrenceUpdate", "RecurrenceWrite"]
