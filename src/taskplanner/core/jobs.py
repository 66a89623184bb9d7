"""RQ integration helpers for reminder dispatch."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from threading import Lock
from typing import TYPE_CHECKING, TypeVar
from uuid import uuid4

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.job import Job, Retry

from .config import get_settings

if TYPE_CHECKING:  # pragma: no cover - typing only
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = logging.getLogger("taskplanner.core.jobs")

T = TypeVar("T")

SessionFactory = Callable[[], AbstractAsyncContextManager["AsyncSession"]]

_job_connection: Redis | None = None
_job_queue: Queue | None = None
_job_lock = Lock()
_job_session_factory: SessionFactory | None = None


class JobQueueUnavailableError(RuntimeError):
    """Raised when the Redis-backed job queue cannot be reached."""


def set_job_connection(connection: Redis | None) -> None:
    """Inject a Redis connection for the job queue (primarily for tests)."""

    global _job_connection, _job_queue
    with _job_lock:
        _job_connection = connection
        _job_queue = None


def close_job_connection() -> None:
    """Close the active Redis connection if one exists."""

    global _job_connection, _job_queue
    with _job_lock:
        connection = _job_connection
        if connection is not None:
            try:
                connection.close()
            except RedisError:  # pragma: no cover - closing failures are best-effort
                logger.debug("Failed to close Redis connection cleanly.", exc_info=True)
        _job_connection = None
        _job_queue = None


def set_job_session_factory(factory: SessionFactory | None) -> None:
    """Override the session factory used when executing jobs."""

    global _job_session_factory
    with _job_lock:
        _job_session_factory = factory


@asynccontextmanager
async def _default_job_session_factory() -> AsyncIterator["AsyncSession"]:
    from ..db.session import async_session_maker

    async with async_session_maker() as session:
        yield session


async def execute_in_job_session(callback: Callable[["AsyncSession"], Awaitable[T]]) -> T:
    """Run ``callback`` with a managed database session."""

    factory = _job_session_factory or _default_job_session_factory
    async with factory() as session:
        return await callback(session)


def _resolve_job_connection() -> Redis:
    global _job_connection
    with _job_lock:
        if _job_connection is not None:
            return _job_connection
        settings = get_settings()
        try:
            connection = Redis.from_url(settings.redis_url)
            connection.ping()
        except RedisError as exc:  # pragma: no cover - network failures
            logger.error("Redis job queue unavailable.", exc_info=True)
            raise JobQueueUnavailableError("Job queue is unavailable.") from exc
        _job_connection = connection
        return connection


def get_job_connection() -> Redis:
    """Return the Redis connection used for job processing."""

    return _resolve_job_connection()


def get_job_queue(name: str | None = None) -> Queue:
    """Return the reminder queue, or another queue on the same connection when ``name`` differs."""

    global _job_queue
    connection = _resolve_job_connection()
    settings = get_settings()
    if name and name != settings.job_queue_name:
        return Queue(name, connection=connection, default_timeout=settings.job_default_timeout or None)
    with _job_lock:
        if _job_queue is None:
            _job_queue = Queue(
                settings.job_queue_name,
                connection=connection,
                default_timeout=settings.job_default_timeout or None,
            )
        return _job_queue


def _build_retry() -> Retry | None:
    settings = get_settings()
    if settings.job_max_retries <= 0:
        return None
    return Retry(max=settings.job_max_retries, interval=settings.job_retry_backoff_seconds or [0])


def enqueue_reminder_dispatch(*, request_id: str | None = None) -> Job:
    """Queue a scan of due reminders."""

    from ..jobs.reminders import dispatch_due_reminders_job

    queue = get_job_queue()
    settings = get_settings()
    result_ttl = settings.job_result_ttl_seconds or None
    try:
        job = queue.enqueue(
            dispatch_due_reminders_job,
            request_id=request_id,
            job_id=f"reminders-{uuid4()}",
            retry=_build_retry(),
            result_ttl=result_ttl,
            failure_ttl=result_ttl,
            description="Dispatch due reminders",
            job_timeout=settings.job_default_timeout or None,
        )
    except RedisError as exc:  # pragma: no cover - network failures
        logger.error("Failed to enqueue reminder dispatch job.", exc_info=True)
        raise JobQueueUnavailableError("Unable to enqueue job; Redis is unavailable.") from exc
    logger.info("Enqueued reminder dispatch job %s", job.id)
    return job


__all__ = [
    "JobQueueUnavailableError",
    "close_job_connection",
    "enqueue_reminder_dispatch",
    "execute_in_job_session",
    "get_job_connection",
    "get_job_queue",
    "set_job_connection",
    "set_job_session_factory",
]
