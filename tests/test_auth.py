"""
Tests for the authentication endpoints

Tests cover:
- Login with company alias + username + password
- /auth/me, /auth/refresh
- Error envelope for missing, invalid and expired tokens
- Password change rules
"""
from datetime import timedelta

from estate_crm.core.security import create_access_token, verify_password
from tests.conftest import DEFAULT_PASSWORD, auth_headers


class TestLogin:

    async def test_login_returns_token_and_user(self, client, plain_user):
        response = await client.post(
            "/auth/login",
            json={"username": "plain", "password": DEFAULT_PASSWORD, "companyAlias": "nord"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] == 1440 * 60
        assert body["user"]["id"] == plain_user.id
        assert body["user"]["companyAlias"] == "nord"
        assert "passwordHash" not in body["user"]
        assert "password_hash" not in body["user"]

    async def test_bad_credentials(self, client, plain_user):
        response = await client.post(
            "/auth/login",
            json={"username": "plain", "password": "wrong-one", "companyAlias": "nord"},
        )
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Unauthenticated",
            "message": "Invalid credentials",
        }

    async def test_unknown_company(self, client, plain_user):
        response = await client.post(
            "/auth/login",
            json={"username": "plain", "password": DEFAULT_PASSWORD, "companyAlias": "ghost"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid company alias"

    async def test_missing_fields_is_invalid_argument(self, client):
        response = await client.post("/auth/login", json={"username": "plain"})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidArgument"


class TestSession:

    async def test_me(self, client, moderator):
        response = await client.get("/auth/me", headers=auth_headers(moderator))
        assert response.status_code == 200
        assert response.json()["username"] == "mod"
        assert response.json()["role"] == "Moderator"

    async def test_missing_token(self, client):
        response = await client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthenticated"
        assert response.json()["message"] == "Access token required"

    async def test_invalid_token(self, client):
        response = await client.get("/auth/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["error"] == "InvalidToken"

    async def test_expired_token(self, client, plain_user):
        token = create_access_token(
            plain_user.id, plain_user.username, "nord", "User", expires_delta=timedelta(minutes=-1)
        )
        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "TokenExpired"

    async def test_refresh(self, client, plain_user):
        response = await client.post("/auth/refresh", headers=auth_headers(plain_user))
        assert response.status_code == 200
        token = response.json()["accessToken"]
        again = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert again.json()["id"] == plain_user.id


class TestChangePassword:

    async def test_change_password(self, client, db_session, plain_user):
        response = await client.put(
            "/auth/change-password",
            headers=auth_headers(plain_user),
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "brand-new"},
        )
        assert response.status_code == 200
        assert verify_password("brand-new", plain_user.password_hash)

    async def test_wrong_current_password(self, client, plain_user):
        response = await client.put(
            "/auth/change-password",
            headers=auth_headers(plain_user),
            json={"currentPassword": "not-it", "newPassword": "brand-new"},
        )
        assert response.status_code == 401

    async def test_new_password_too_short(self, client, plain_user):
        response = await client.put(
            "/auth/change-password",
            headers=auth_headers(plain_user),
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "abc"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Password must be at least 6 characters long"
