from __future__ import annotations

import os

os.environ.setdefault("PLANNER_ENVIRONMENT", "test")
os.environ.setdefault("PLANNER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncIterator  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskplanner.core.cache import cache_metrics, set_cache_client  # noqa: E402
from taskplanner.core.config import Settings, get_settings  # noqa: E402
from taskplanner.db.base import metadata  # noqa: E402
from taskplanner.db.session import build_engine  # noqa: E402
from taskplanner.deps import get_db_session  # noqa: E402
from taskplanner.main import create_app  # noqa: E402
from taskplanner.models import User  # noqa: E402
from taskplanner.services import UserService  # noqa: E402
from taskplanner.services.mailer import get_email_sender  # noqa: E402

USER_PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def reset_shared_state() -> None:
    set_cache_client(None)
    cache_metrics.reset()
    get_email_sender().outbox.clear()


@pytest.fixture()
def settings() -> Settings:
    return get_settings()


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db_session:
        yield db_session


@pytest.fixture()
async def user(session: AsyncSession, settings: Settings) -> User:
    return await UserService(session, settings).create_user(
        username="alice",
        password=USER_PASSWORD,
        email="alice@example.com",
    )


@pytest.fixture()
async def other_user(session: AsyncSession, settings: Settings) -> User:
    return await UserService(session, settings).create_user(username="bob", password=USER_PASSWORD)


@pytest.fixture()
async def app(session: AsyncSession, settings: Settings) -> AsyncIterator[FastAPI]:
    application = create_app(settings)

    async def _override_db_session() -> AsyncIterator[AsyncSession]:
        yield session

    application.dependency_overrides[get_db_session] = _override_db_session
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture()
async def signed_in(client: AsyncClient, user: User) -> AsyncClient:
    response = await client.post("/api/auth/login", json={"username": user.username, "password": USER_PASSWORD})
    assert response.status_code == 200, response.text
    return client
