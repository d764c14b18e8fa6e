"""
Auth endpoint tests — registration, login, refresh, profile upkeep, and
the behaviour of the authentication guard on protected routes.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import update

from app.models import User
from conftest import bearer, register


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_returns_user_and_tokens(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/register", json={
        "username": "new_user",
        "email": "New.User@Example.com",
        "password": "secret123",
        "profile": {"firstName": "New", "lastName": "User", "phone": "+91 9876543210"},
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["user"]["email"] == "new.user@example.com"
    assert data["user"]["role"] == "user"
    assert data["user"]["fullName"] == "New User"
    assert data["user"]["lastLogin"] is not None
    assert "password" not in data["user"]
    assert "passwordHash" not in data["user"]
    assert data["accessToken"] and data["refreshToken"]
    assert data["expiresIn"] == 15 * 60


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(async_client: AsyncClient):
    await register(async_client, "first_user", "dup@example.com")
    resp = await async_client.post("/api/auth/register", json={
        "username": "second_user", "email": "dup@example.com", "password": "secret123",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_duplicate_username_conflicts(async_client: AsyncClient):
    await register(async_client, "taken_name", "one@example.com")
    resp = await async_client.post("/api/auth/register", json={
        "username": "taken_name", "email": "two@example.com", "password": "secret123",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "Username already taken"


@pytest.mark.asyncio
async def test_register_validation_errors_list_fields(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/register", json={
        "username": "no spaces!",
        "email": "not-an-email",
        "password": "123",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    fields = {err["field"] for err in body["errors"]}
    assert {"username", "email", "password"} <= fields


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_success(async_client: AsyncClient):
    await register(async_client, "login_user", "login@example.com", password="hunter22")
    resp = await async_client.post("/api/auth/login", json={
        "email": "LOGIN@example.com", "password": "hunter22",
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["username"] == "login_user"
    assert data["accessToken"]


@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_email_look_the_same(async_client: AsyncClient):
    await register(async_client, "login_user", "login@example.com", password="hunter22")

    wrong_pw = await async_client.post("/api/auth/login", json={
        "email": "login@example.com", "password": "nope-nope",
    })
    unknown = await async_client.post("/api/auth/login", json={
        "email": "ghost@example.com", "password": "hunter22",
    })
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json()["message"] == unknown.json()["message"] == "Invalid email or password"


# ---------------------------------------------------------------------------
# Guard behaviour on /me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_with_valid_token(async_client: AsyncClient, user_auth):
    resp = await async_client.get("/api/auth/me", headers=user_auth["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["email"] == "seller.one@example.com"


@pytest.mark.asyncio
async def test_me_without_token(async_client: AsyncClient):
    resp = await async_client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access denied. No token provided."


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [
    "Token abc",
    "Bearer",
    "Bearer a b",
    "bearer abc",
])
async def test_me_with_non_bearer_header_counts_as_no_token(async_client: AsyncClient, header):
    resp = await async_client.get("/api/auth/me", headers={"Authorization": header})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access denied. No token provided."


@pytest.mark.asyncio
async def test_me_with_garbage_token(async_client: AsyncClient):
    resp = await async_client.get("/api/auth/me", headers=bearer("not.a.jwt"))
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_me_for_deactivated_user(async_client: AsyncClient, user_auth, db_session):
    await db_session.execute(
        update(User).where(User.id == user_auth["user"]["id"]).values(is_active=False)
    )
    await db_session.commit()

    resp = await async_client.get("/api/auth/me", headers=user_auth["headers"])
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access denied. User not found or inactive."


# ---------------------------------------------------------------------------
# Refresh / profile / password
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refresh_issues_new_pair(async_client: AsyncClient, user_auth):
    resp = await async_client.post("/api/auth/refresh", json={
        "refreshToken": user_auth["tokens"]["refreshToken"],
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["accessToken"]
    me = await async_client.get("/api/auth/me", headers=bearer(data["accessToken"]))
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_refresh_rejects_garbage(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/refresh", json={"refreshToken": "garbage"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_update_profile(async_client: AsyncClient, user_auth):
    resp = await async_client.put("/api/auth/profile", headers=user_auth["headers"], json={
        "profile": {"firstName": "Ravi", "lastName": "Kumar"},
    })
    assert resp.status_code == 200
    user = resp.json()["data"]["user"]
    assert user["profile"]["firstName"] == "Ravi"
    assert user["fullName"] == "Ravi Kumar"


@pytest.mark.asyncio
async def test_change_password(async_client: AsyncClient, user_auth):
    resp = await async_client.put("/api/auth/password", headers=user_auth["headers"], json={
        "currentPassword": "secret123", "newPassword": "better-secret",
    })
    assert resp.status_code == 200

    old = await async_client.post("/api/auth/login", json={
        "email": "seller.one@example.com", "password": "secret123",
    })
    new = await async_client.post("/api/auth/login", json={
        "email": "seller.one@example.com", "password": "better-secret",
    })
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(async_client: AsyncClient, user_auth):
    resp = await async_client.put("/api/auth/password", headers=user_auth["headers"], json={
        "currentPassword": "wrong-one", "newPassword": "better-secret",
    })
    assert resp.status_code == 400
    assert resp.json()["message"] == "Current password is incorrect"


# ---------------------------------------------------------------------------
# Role checks
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_admin_route_forbidden_for_regular_user(async_client: AsyncClient, user_auth):
    resp = await async_client.post("/api/admin/cars/1/restore", headers=user_auth["headers"])
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Insufficient permissions."


@pytest.mark.asyncio
async def test_admin_route_requires_authentication(async_client: AsyncClient):
    resp = await async_client.post("/api/admin/cars/1/restore")
    assert resp.status_code == 401
