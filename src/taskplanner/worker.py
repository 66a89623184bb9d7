"""Command-line entry point for the reminder worker."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from rq import Worker

from .core.config import get_settings
from .core.jobs import get_job_connection, get_job_queue
from .core.logging import configure_logging

logger = logging.getLogger("taskplanner.worker")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Process reminder dispatch jobs.")
    parser.add_argument(
        "-q",
        "--queue",
        action="append",
        dest="queues",
        help=f"Queue to listen on; repeatable (default: {settings.job_queue_name})",
    )
    parser.add_argument("--name", default=settings.job_worker_name or None, help="Worker name")
    parser.add_argument("--burst", action="store_true", help="Drain the queues and exit")
    return parser


def build_worker(
    queue_names: Sequence[str] | None = None,
    *,
    name: str | None = None,
    worker_class: type[Worker] = Worker,
) -> Worker:
    """Create a worker bound to ``queue_names`` or the configured reminder queue."""

    queues = [get_job_queue(queue_name) for queue_name in queue_names or [None]]
    return worker_class(queues, connection=get_job_connection(), name=name)


def run(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings())

    worker = build_worker(args.queues, name=args.name)
    queue_names = worker.queue_names()
    logger.info(
        "Starting RQ worker '%s' on %s",
        worker.name,
        ", ".join(queue_names),
        extra={"queues": queue_names, "worker_name": worker.name, "burst": args.burst},
    )
    worker.work(burst=args.burst, with_scheduler=not args.burst)


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()
