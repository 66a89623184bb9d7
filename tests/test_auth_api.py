from __future__ import annotations

import re

import pytest
from httpx import AsyncClient

from taskplanner.models import User
from taskplanner.services.mailer import get_email_sender


pytestmark = pytest.mark.asyncio

USER_PASSWORD = "correct-horse"


async def test_signup_sets_session_cookie(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/signup",
        json={"username": "new_user", "password": "long-enough", "email": "New@Example.com"},
    )

    assert response.status_code == 201, response.text
    payload = response.json()
    assert payload["user"]["username"] == "new_user"
    assert payload["user"]["email"] == "new@example.com"
    assert payload["session"]["token_type"] == "bearer"
    assert client.cookies.get("session") == payload["session"]["access_token"]

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["username"] == "new_user"


async def test_signup_rejects_invalid_and_duplicate_usernames(client: AsyncClient, user: User) -> None:
    too_short = await client.post("/api/auth/signup", json={"username": "ab", "password": "long-enough"})
    assert too_short.status_code == 422
    assert too_short.json()["code"] == "validation_error"
    assert too_short.json()["details"]["field"] == "username"

    taken = await client.post("/api/auth/signup", json={"username": user.username, "password": "long-enough"})
    assert taken.status_code == 409
    assert taken.json()["details"]["field"] == "username"


async def test_login_with_wrong_password_is_rejected(client: AsyncClient, user: User) -> None:
    response = await client.post("/api/auth/login", json={"username": user.username, "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json()["code"] == "invalid_credentials"


async def test_protected_routes_require_a_session(client: AsyncClient) -> None:
    response = await client.get("/api/tasks/")

    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"


async def test_logout_revokes_the_token(client: AsyncClient, user: User) -> None:
    login = await client.post("/api/auth/login", json={"username": user.username, "password": USER_PASSWORD})
    token = login.json()["session"]["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert (await client.get("/api/auth/me", headers=headers)).status_code == 200

    logout = await client.post("/api/auth/logout", headers=headers)
    assert logout.status_code == 200

    client.cookies.clear()
    assert (await client.get("/api/auth/me", headers=headers)).status_code == 401


async def test_profile_update_and_password_change(signed_in: AsyncClient, user: User) -> None:
    updated = await signed_in.patch("/api/auth/me", json={"full_name": "Alice Liddell"})
    assert updated.status_code == 200
    assert updated.json()["full_name"] == "Alice Liddell"

    wrong = await signed_in.post(
        "/api/auth/me/password",
        json={"current_password": "not-my-password", "new_password": "brand-new-pass"},
    )
    assert wrong.status_code == 422
    assert wrong.json()["details"]["field"] == "current_password"

    changed = await signed_in.post(
        "/api/auth/me/password",
        json={"current_password": USER_PASSWORD, "new_password": "brand-new-pass"},
    )
    assert changed.status_code == 200

    relogin = await signed_in.post("/api/auth/login", json={"username": user.username, "password": "brand-new-pass"})
    assert relogin.status_code == 200


async def test_password_reset_flow(client: AsyncClient, user: User) -> None:
    login = await client.post("/api/auth/login", json={"username": user.username, "password": USER_PASSWORD})
    old_token = login.json()["session"]["access_token"]

    requested = await client.post("/api/auth/forgot-password", json={"username": user.username})
    assert requested.status_code == 200
    assert requested.json()["success"] is True

    outbox = get_email_sender().outbox
    assert [message.to for message in outbox] == ["alice@example.com"]
    match = re.search(r"token=([A-Za-z0-9_\-]+)", outbox[0].text)
    assert match is not None

    reset = await client.post(
        "/api/auth/reset-password",
        json={"token": match.group(1), "new_password": "fresh-password"},
    )
    assert reset.status_code == 200

    reused = await client.post(
        "/api/auth/reset-password",
        json={"token": match.group(1), "new_password": "another-password"},
    )
    assert reused.status_code == 422
    assert reused.json()["code"] == "invalid_reset_token"

    client.cookies.clear()
    stale = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {old_token}"})
    assert stale.status_code == 401

    fresh = await client.post("/api/auth/login", json={"username": user.username, "password": "fresh-password"})
    assert fresh.status_code == 200


async def test_forgot_password_does_not_reveal_unknown_accounts(client: AsyncClient) -> None:
    response = await client.post("/api/auth/forgot-password", json={"username": "nobody_here"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert get_email_sender().outbox == []
