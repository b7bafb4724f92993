"""Tests for AuthService and the auth endpoints."""

import pytest
from fastapi.testclient import TestClient

from inkwell.auth.permissions import UserRole
from inkwell.auth.schemas import RegisterRequest
from inkwell.auth.service import (
    AuthService,
    InvalidCredentialsError,
    UserExistsError,
    UserInactiveError,
)
from inkwell.auth.security import decode_access_token
from tests.fakes import InMemoryCollection


def register_request(**overrides) -> RegisterRequest:
    data = {"username": "Ada", "email": "Ada@Example.com", "password": "secret123"}
    data.update(overrides)
    return RegisterRequest(**data)


class TestAuthService:
    @pytest.mark.asyncio
    async def test_register_normalizes_email_and_hashes(
        self, auth_service: AuthService, users: InMemoryCollection
    ) -> None:
        user = await auth_service.register_user(register_request())

        stored = users.documents[user.id]
        assert stored["email"] == "ada@example.com"
        assert stored["password_hash"] != "secret123"
        assert stored["role"] == "user"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service: AuthService) -> None:
        await auth_service.register_user(register_request())

        with pytest.raises(UserExistsError):
            await auth_service.register_user(register_request(email="ada@example.com"))

    @pytest.mark.asyncio
    async def test_authenticate(self, auth_service: AuthService) -> None:
        registered = await auth_service.register_user(register_request())

        user = await auth_service.authenticate_user("ADA@example.com", "secret123")

        assert user.id == registered.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service: AuthService) -> None:
        await auth_service.register_user(register_request())

        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("ada@example.com", "nope")

    @pytest.mark.asyncio
    async def test_inactive_user(
        self, auth_service: AuthService, users: InMemoryCollection
    ) -> None:
        user = await auth_service.register_user(register_request())
        users.documents[user.id]["is_active"] = False

        with pytest.raises(UserInactiveError):
            await auth_service.authenticate_user("ada@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_token_carries_identity_and_role(
        self, auth_service: AuthService
    ) -> None:
        user = await auth_service.register_user(register_request(role=UserRole.ADMIN))

        token = auth_service.create_token(user)
        payload = decode_access_token(token.access_token)

        assert payload["sub"] == str(user.id)
        assert payload["name"] == "Ada"
        assert payload["role"] == "admin"
        assert token.user.role == UserRole.ADMIN


class TestAuthEndpoints:
    def test_register_login_me(self, client: TestClient) -> None:
        registered = client.post(
            "/v1/auth/register",
            json={"username": "Ada", "email": "ada@example.com", "password": "secret123"},
        )
        login = client.post(
            "/v1/auth/login",
            json={"email": "ada@example.com", "password": "secret123"},
        )
        token = login.json()["access_token"]
        me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert registered.status_code == 201
        assert login.status_code == 200
        assert me.json()["username"] == "Ada"

    def test_bad_login_is_401(self, client: TestClient) -> None:
        response = client.post(
            "/v1/auth/login",
            json={"email": "nobody@example.com", "password": "secret123"},
        )
        assert response.status_code == 401

    def test_garbage_token_is_401(self, client: TestClient) -> None:
        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401

    def test_short_password_is_422(self, client: TestClient) -> None:
        response = client.post(
            "/v1/auth/register",
            json={"username": "Ada", "email": "ada@example.com", "password": "123"},
        )
        assert response.status_code == 422

    def test_users_listing_requires_admin(
        self, client: TestClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ) -> None:
        assert client.get("/v1/auth/users", headers=user_headers).status_code == 403
        assert client.get("/v1/auth/users", headers=admin_headers).status_code == 200
