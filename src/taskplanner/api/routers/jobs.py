"""Routes exposing background job orchestration."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status

from ...core.jobs import JobQueueUnavailableError, enqueue_reminder_dispatch
from ...deps import CurrentUserDependency
from ...schemas import JobEnqueueResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _as_timezone_aware(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@router.post(
    "/reminders",
    response_model=JobEnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Enqueue a reminder dispatch job",
)
async def enqueue_reminders_job(request: Request, _: CurrentUserDependency) -> JobEnqueueResponse:
    try:
        job = enqueue_reminder_dispatch(request_id=getattr(request.state, "request_id", None))
    except JobQueueUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Background job queue is unavailable.",
        ) from exc

    return JobEnqueueResponse(
        job_id=job.id,
        queue=job.origin or "default",
        enqueued_at=_as_timezone_aware(job.enqueued_at),
    )


__all__ = ["router"]
