from __future__ import annotations

import io
import json
import logging

from taskplanner.core.config import Settings
from taskplanner.core.context import bind_request_id, get_log_fields, get_request_id, job_context, reset_request_id
from taskplanner.core.logging import RequestContextFilter, build_logging_config, configure_logging


def test_configure_logging_outputs_json_with_request_id() -> None:
    settings = Settings(environment="test", log_level="INFO")
    configure_logging(settings)

    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)),
        None,
    )
    assert handler is not None, "Expected JSON stream handler to be configured"

    buffer = io.StringIO()
    previous_stream = handler.setStream(buffer)

    token = bind_request_id("req-json-1")
    try:
        logger = logging.getLogger("taskplanner.tests.logging")
        logger.info("structured log event", extra={"component": "unit-test", "task_id": 7})
    finally:
        handler.flush()
        reset_request_id(token)
        handler.setStream(previous_stream)

    log_lines = buffer.getvalue().strip().splitlines()
    assert log_lines, "Expected structured log line to be captured"
    payload = json.loads(log_lines[-1])

    assert payload["message"] == "structured log event"
    assert payload["request_id"] == "req-json-1"
    assert payload["environment"] == settings.environment
    assert payload["level"] == "INFO"
    assert payload["component"] == "unit-test"
    assert payload["task_id"] == 7
    assert payload["service"] == settings.project_name


def test_sqlalchemy_echo_follows_db_echo() -> None:
    quiet = build_logging_config(Settings(environment="test"))
    noisy = build_logging_config(Settings(environment="test", db_echo=True))

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == logging.WARNING
    assert noisy["loggers"]["sqlalchemy.engine"]["level"] == logging.INFO
    assert quiet["loggers"]["rq.worker"]["propagate"] is False


def test_job_context_fields_reach_records_and_unwind() -> None:
    record = logging.LogRecord("taskplanner.jobs", logging.INFO, __file__, 1, "dispatched", None, None)

    with job_context("req-77", job_id="reminders-abc", owner_id=None):
        assert get_request_id() == "req-77"
        RequestContextFilter().filter(record)

    assert record.request_id == "req-77"
    assert record.job_id == "reminders-abc"
    assert not hasattr(record, "owner_id")
    assert get_request_id() == "-"
    assert dict(get_log_fields()) == {}


def test_explicit_extra_wins_over_bound_fields() -> None:
    record = logging.LogRecord("taskplanner.jobs", logging.INFO, __file__, 1, "dispatched", None, None)
    record.job_id = "from-extra"

    with job_context(job_id="from-context"):
        RequestContextFilter().filter(record)

    assert record.job_id == "from-extra"
    assert record.request_id == "-"
