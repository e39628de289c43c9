"""Tests for token handling, the role gate and the auth routes."""

import pytest
from datetime import timedelta
from dependencies.rbac import authorize
from models import User
from routers.auth.helpers import auth_helpers
from utils.errors import AuthenticationError
from conftest import TEST_PASSWORD, auth_headers, create_user


def test_password_hash_round_trip():
    hashed = auth_helpers.hash_password("hunter22")
    assert hashed != "hunter22"
    assert auth_helpers.verify_password("hunter22", hashed) is True
    assert auth_helpers.verify_password("wrong", hashed) is False


def test_verify_password_against_non_bcrypt_hash():
    assert auth_helpers.verify_password("hunter22", "not-a-hash") is False


def test_token_carries_subject_and_role():
    token = auth_helpers.create_access_token("7f1c0a52-6a4b-4f3e-9a51-1d0a7c3e2b10", "vendor", "v@example.com")
    claims = auth_helpers.verify_token(token)
    assert claims == {
        "sub": "7f1c0a52-6a4b-4f3e-9a51-1d0a7c3e2b10",
        "role": "vendor",
        "email": "v@example.com",
    }


def test_expired_token_is_rejected():
    token = auth_helpers.create_access_token("abc", "buyer", expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthenticationError) as exc_info:
        auth_helpers.verify_token(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token expired"


def test_tampered_token_is_rejected():
    token = auth_helpers.create_access_token("abc", "buyer")
    with pytest.raises(AuthenticationError):
        auth_helpers.verify_token(token + "x")


@pytest.mark.parametrize("role, required, allowed", [
    ("buyer", ["buyer"], True),
    ("vendor", ["buyer"], False),
    ("buyer", ["vendor"], False),
    ("vendor", ["vendor"], True),
    ("admin", ["buyer"], True),
    ("admin", ["vendor"], True),
    ("buyer", ["admin"], False),
    ("vendor", ["buyer", "vendor"], True),
])
def test_authorize_admin_capability_union(role, required, allowed):
    assert authorize(role, required) is allowed


async def test_signup_and_login(client):
    response = await client.post("/auth/signup", json={
        "name": "Asha",
        "email": "asha@example.com",
        "password": "secret123",
        "role": "vendor",
        "company_name": "Asha Textiles"
    })
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "vendor"
    assert "password_hash" not in user

    response = await client.post("/auth/login", json={"email": "asha@example.com", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    claims = auth_helpers.verify_token(data["access_token"])
    assert claims["sub"] == user["id"]
    assert claims["role"] == "vendor"


async def test_signup_duplicate_email(client, buyer):
    response = await client.post("/auth/signup", json={
        "name": "Again", "email": "buyer@example.com", "password": "secret123"
    })
    assert response.status_code == 409


async def test_signup_cannot_create_admin(client):
    response = await client.post("/auth/signup", json={
        "name": "Eve", "email": "eve@example.com", "password": "secret123", "role": "admin"
    })
    assert response.status_code == 400


async def test_login_wrong_password(client, buyer):
    response = await client.post("/auth/login", json={"email": "buyer@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


async def test_login_into_wrong_portal(client, buyer):
    response = await client.post("/auth/login", json={
        "email": "buyer@example.com", "password": TEST_PASSWORD, "role": "vendor"
    })
    assert response.status_code == 403


async def test_profile_requires_token(client):
    response = await client.get("/auth/profile")
    assert response.status_code == 401

    response = await client.get("/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


async def test_profile_read_and_update(client, buyer, vendor):
    response = await client.get("/auth/profile", headers=auth_headers(buyer))
    assert response.status_code == 200
    assert response.json()["email"] == "buyer@example.com"

    response = await client.patch(
        "/auth/profile", json={"name": "Renamed", "company_name": None}, headers=auth_headers(buyer)
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Renamed"
    assert user["company_name"] is None

    response = await client.patch(
        "/auth/profile", json={"email": "vendor@example.com"}, headers=auth_headers(buyer)
    )
    assert response.status_code == 409


async def test_change_password(client, buyer):
    headers = auth_headers(buyer)
    response = await client.patch(
        "/auth/password",
        json={"current_password": "wrong-one", "new_password": "newsecret1"},
        headers=headers
    )
    assert response.status_code == 400

    response = await client.patch(
        "/auth/password",
        json={"current_password": TEST_PASSWORD, "new_password": "newsecret1"},
        headers=headers
    )
    assert response.status_code == 200

    response = await client.post("/auth/login", json={"email": "buyer@example.com", "password": "newsecret1"})
    assert response.status_code == 200


async def test_token_for_deleted_user_is_rejected(client, session_factory, buyer):
    headers = auth_headers(buyer)
    async with session_factory() as session:
        user = await session.get(User, buyer.id)
        await session.delete(user)
        await session.commit()

    response = await client.get("/auth/profile", headers=headers)
    assert response.status_code == 401


async def test_token_issued_before_role_change_is_rejected(client, session_factory, admin):
    second_admin = await create_user(session_factory, "admin", "ops@example.com")
    stale_headers = auth_headers(second_admin)

    response = await client.get("/admin/users", headers=stale_headers)
    assert response.status_code == 200

    response = await client.patch(
        f"/admin/users/{second_admin.id}", json={"role": "buyer"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200

    response = await client.get("/admin/users", headers=stale_headers)
    assert response.status_code == 401

    async with session_factory() as session:
        demoted = await session.get(User, second_admin.id)
    response = await client.get("/admin/users", headers=auth_headers(demoted))
    assert response.status_code == 403
