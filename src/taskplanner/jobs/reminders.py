"""Reminder dispatch job."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rq import get_current_job
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.context import job_context
from ..core.jobs import execute_in_job_session
from ..schemas import ReminderDispatchResult
from ..services.reminders import ReminderService

logger = logging.getLogger("taskplanner.jobs.reminders")


async def _dispatch_due_reminders() -> ReminderDispatchResult:
    async def _invoke(session: AsyncSession) -> ReminderDispatchResult:
        return await ReminderService(session).dispatch_due()

    return await execute_in_job_session(_invoke)


def dispatch_due_reminders_job(request_id: str | None = None) -> dict[str, Any]:
    """Send every reminder due within the lookahead window."""

    job = get_current_job()
    with job_context(request_id, job_id=job.id if job is not None else None):
        result = asyncio.run(_dispatch_due_reminders())
        logger.info(
            "Dispatched %s of %s due reminders",
            result.sent,
            result.total,
            extra={"sent": result.sent, "failed": result.failed},
        )
        return result.model_dump(mode="json")


__all__ = ["dispatch_due_reminders_job"]
