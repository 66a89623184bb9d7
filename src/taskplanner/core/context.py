"""Execution context carried into log records by the web process and the worker."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from types import MappingProxyType

REQUEST_ID_HEADER = "X-Request-ID"

_EMPTY_FIELDS: Mapping[str, object] = MappingProxyType({})

_request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
_log_fields_ctx_var: ContextVar[Mapping[str, object]] = ContextVar("log_fields", default=_EMPTY_FIELDS)


def get_request_id() -> str:
    return _request_id_ctx_var.get()


def bind_request_id(request_id: str) -> Token[str]:
    return _request_id_ctx_var.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id_ctx_var.reset(token)


def get_log_fields() -> Mapping[str, object]:
    """Return the owner, task and job fields bound to the current context."""

    return _log_fields_ctx_var.get()


def bind_log_fields(**fields: object) -> Token[Mapping[str, object]]:
    """Add fields such as ``owner_id`` or ``job_id`` to every later log record.

    ``None`` values are skipped so callers can pass optional ids straight through.
    """

    merged = dict(_log_fields_ctx_var.get())
    merged.update({key: value for key, value in fields.items() if value is not None})
    return _log_fields_ctx_var.set(MappingProxyType(merged))


def reset_log_fields(token: Token[Mapping[str, object]]) -> None:
    _log_fields_ctx_var.reset(token)


@contextmanager
def job_context(request_id: str | None = None, **fields: object) -> Iterator[None]:
    """Bind the enqueuing request id and job fields for the duration of a job."""

    request_token = bind_request_id(request_id or "-")
    fields_token = bind_log_fields(**fields)
    try:
        yield
    finally:
        reset_log_fields(fields_token)
        reset_request_id(request_token)


__all__ = [
    "REQUEST_ID_HEADER",
    "bind_log_fields",
    "bind_request_id",
    "get_log_fields",
    "get_request_id",
    "job_context",
    "reset_log_fields",
    "reset_request_id",
]
