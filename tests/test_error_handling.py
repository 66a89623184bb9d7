from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI, status
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, ValidationInfo, field_validator
from sqlalchemy.exc import IntegrityError

from taskplanner.core.logging import RequestContextFilter
from taskplanner.deps import CurrentUserDependency
from taskplanner.errors import ApplicationError, DependencyBlockedError
from taskplanner.models import User

pytestmark = pytest.mark.asyncio


class ExamplePayload(BaseModel):
    name: str


class Window(BaseModel):
    start: int
    end: int

    @field_validator("end")
    @classmethod
    def end_after_start(cls, value: int, info: ValidationInfo) -> int:
        if value <= info.data.get("start", value - 1):
            raise ValueError("end must come after start")
        return value


async def test_application_error_response_schema(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/error/application")
    async def trigger_application_error() -> None:  # pragma: no cover - defined in test
        raise ApplicationError(
            "Example failure",
            code="example_error",
            status_code=status.HTTP_418_IM_A_TEAPOT,
            details={"foo": "bar"},
        )

    response = await client.get("/error/application")

    assert response.status_code == status.HTTP_418_IM_A_TEAPOT
    request_id = response.headers["X-Request-ID"]
    assert response.json() == {
        "code": "example_error",
        "message": "Example failure",
        "details": {"foo": "bar", "request_id": request_id},
    }


async def test_blocked_completion_lists_blockers(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/error/blocked")
    async def trigger_blocked() -> None:  # pragma: no cover - defined in test
        raise DependencyBlockedError(details={"blocking_task_ids": [3, 5]})

    response = await client.get("/error/blocked")

    assert response.status_code == status.HTTP_409_CONFLICT
    payload = response.json()
    assert payload["code"] == "dependency_blocked"
    assert payload["details"]["blocking_task_ids"] == [3, 5]


async def test_validation_error_response_schema(app: FastAPI, client: AsyncClient) -> None:
    @app.post("/error/validation")
    async def create_item(_: ExamplePayload) -> None:  # pragma: no cover - defined in test
        return None

    response = await client.post("/error/validation", json={})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Request validation failed."
    assert "errors" in payload["details"]
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_validator_value_errors_are_serialised(app: FastAPI, client: AsyncClient) -> None:
    @app.post("/error/window")
    async def create_window(_: Window) -> None:  # pragma: no cover - defined in test
        return None

    response = await client.post("/error/window", json={"start": 5, "end": 2})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    errors = response.json()["details"]["errors"]
    assert errors[0]["loc"] == ["body", "end"]
    assert "end must come after start" in errors[0]["msg"]


async def test_not_found_error_response_schema(client: AsyncClient) -> None:
    response = await client.get("/api/does-not-exist")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    payload = response.json()
    assert payload["code"] == "not_found"
    assert payload["message"]
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_integrity_error_response_schema(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/error/database")
    async def trigger_integrity_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("constraint"))

    response = await client.get("/error/database")

    assert response.status_code == status.HTTP_409_CONFLICT
    payload = response.json()
    assert payload["code"] == "db_integrity_error"
    assert payload["message"] == "Database integrity violation."


async def test_unhandled_error_hides_internal_details(app: FastAPI) -> None:
    @app.get("/error/unhandled")
    async def trigger_unhandled_error() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("Sensitive detail")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    payload = response.json()
    assert payload["code"] == "server_error"
    assert payload["message"] == "Internal server error."
    assert "Sensitive" not in response.text


async def test_pages_redirect_to_login_when_signed_out(client: AsyncClient) -> None:
    response = await client.get("/app", headers={"Accept": "text/html"})

    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"].endswith("/auth/login")


async def test_api_stays_json_when_signed_out(client: AsyncClient) -> None:
    response = await client.get("/api/tasks/", headers={"Accept": "text/html"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "not_authenticated"


class _InMemoryHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


async def test_request_id_attached_to_logs(app: FastAPI, client: AsyncClient) -> None:
    logger = logging.getLogger("tests.error_handling")
    handler = _InMemoryHandler()
    handler.addFilter(RequestContextFilter())
    logger.addHandler(handler)
    original_level = logger.level
    logger.setLevel(logging.INFO)

    @app.get("/log")
    async def emit_log() -> dict[str, str]:  # pragma: no cover - defined in test
        logger.info("Log entry")
        return {"status": "ok"}

    try:
        response = await client.get("/log", headers={"X-Request-ID": "req-from-client"})
    finally:
        logger.removeHandler(handler)
        logger.setLevel(original_level)
        handler.close()

    assert response.headers["X-Request-ID"] == "req-from-client"
    matching = [record for record in handler.records if record.getMessage() == "Log entry"]
    assert matching
    assert getattr(matching[0], "request_id", None) == "req-from-client"


async def test_signed_in_owner_attached_to_logs(app: FastAPI, signed_in: AsyncClient, user: User) -> None:
    logger = logging.getLogger("tests.error_handling")
    handler = _InMemoryHandler()
    handler.addFilter(RequestContextFilter())
    logger.addHandler(handler)
    original_level = logger.level
    logger.setLevel(logging.INFO)

    @app.get("/log/owner")
    async def emit_owner_log(current_user: CurrentUserDependency) -> dict[str, str]:  # pragma: no cover
        logger.info("Owner entry")
        return {"status": "ok"}

    try:
        response = await signed_in.get("/log/owner")
    finally:
        logger.removeHandler(handler)
        logger.setLevel(original_level)
        handler.close()

    assert response.status_code == status.HTTP_200_OK
    matching = [record for record in handler.records if record.getMessage() == "Owner entry"]
    assert matching
    assert getattr(matching[0], "owner_id", None) == user.id
