"""Schemas for background job orchestration."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class JobEnqueueResponse(BaseModel):
    """Acknowledgement returned after a job is queued."""

    job_id: str = Field(description="Identifier of the queued job")
    queue: str = Field(description="Queue the job was placed on")
    enqueued_at: datetime


__all__ = ["JobEnqueueResponse"]
