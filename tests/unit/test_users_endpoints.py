"""Unit tests for user account and dashboard endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from board_backend.errors import BadRequestError, ConflictError
from board_backend.models.auth import TokenPayload
from board_backend.models.visitor import VisitorSummary
from board_backend.services.token_issuer import TokenIssuer

JWT_SECRET = "test-secret-key-for-jwt-unit-tests"


def _bearer(user_id: int = 1, email: str = "a@x.com", ttl=timedelta(minutes=15)) -> dict:
    token = TokenIssuer(JWT_SECRET).issue(TokenPayload(id=user_id, email=email), ttl).token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def current_user(user):
    """Make get_current_user resolve the fixture user."""
    with patch("board_backend.api.dependencies.UserService") as MockUserService:
        MockUserService.return_value.get_by_id = AsyncMock(return_value=user)
        yield user


# ---------------------------------------------------------------------------
# POST /users
# ---------------------------------------------------------------------------

class TestSignUp:
    def test_creates_account(self, client, user):
        with patch("board_backend.api.users.UserService") as MockUserService:
            MockUserService.return_value.create_user = AsyncMock(return_value=user)

            response = client.post(
                "/users",
                json={
                    "email": "a@x.com",
                    "password": "password-123",
                    "name": "Alice",
                    "nickname": "alice",
                },
            )

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "a@x.com"
        assert body["role"] == "user"
        assert "password_hash" not in body
        MockUserService.return_value.create_user.assert_awaited_once_with(
            email="a@x.com", password="password-123", name="Alice", nickname="alice"
        )

    def test_duplicate_email_is_conflict(self, client):
        with patch("board_backend.api.users.UserService") as MockUserService:
            MockUserService.return_value.create_user = AsyncMock(
                side_effect=ConflictError("Email a@x.com is already registered")
            )

            response = client.post(
                "/users",
                json={"email": "a@x.com", "password": "password-123", "name": "Alice"},
            )

        assert response.status_code == 409
        assert "already registered" in response.json()["message"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "not-an-email", "password": "password-123", "name": "A"},
            {"email": "a@x.com", "password": "short", "name": "A"},
            {"email": "a@x.com", "password": "         ", "name": "A"},
            {"email": "a@x.com", "password": "p" * 100, "name": "A"},
            {"email": "a@x.com", "password": "\u00e9" * 40, "name": "A"},
        ],
    )
    def test_invalid_payload(self, client, payload):
        response = client.post("/users", json=payload)
        assert response.status_code == 400

    def test_unhashable_password_is_bad_request(self, client):
        with patch("board_backend.api.users.UserService") as MockUserService:
            MockUserService.return_value.create_user = AsyncMock(
                side_effect=BadRequestError("Password cannot be longer than 72 bytes")
            )

            response = client.post(
                "/users",
                json={"email": "a@x.com", "password": "password-123", "name": "Alice"},
            )

        assert response.status_code == 400
        assert response.json()["error"] == "bad_request"


# ---------------------------------------------------------------------------
# /users/me
# ---------------------------------------------------------------------------

class TestMe:
    def test_returns_profile(self, client, current_user):
        response = client.get("/users/me", headers=_bearer())

        assert response.status_code == 200
        assert response.json()["nickname"] == "alice"

    def test_requires_token(self, client):
        response = client.get("/users/me")
        assert response.status_code == 401

    def test_expired_token_rejected(self, client, current_user):
        response = client.get("/users/me", headers=_bearer(ttl=timedelta(seconds=-1)))
        assert response.status_code == 401

    def test_deleted_user_rejected(self, client):
        with patch("board_backend.api.dependencies.UserService") as MockUserService:
            MockUserService.return_value.get_by_id = AsyncMock(return_value=None)

            response = client.get("/users/me", headers=_bearer())

        assert response.status_code == 401

    def test_update_password(self, client, current_user):
        with patch("board_backend.api.users.UserService") as MockUserService:
            MockUserService.return_value.update_password = AsyncMock(return_value=current_user)

            response = client.patch(
                "/users/me/password",
                json={"password": "new-password-1"},
                headers=_bearer(),
            )

        assert response.status_code == 200
        MockUserService.return_value.update_password.assert_awaited_once_with(
            "a@x.com", "new-password-1"
        )

    def test_overlong_new_password_rejected(self, client, current_user):
        with patch("board_backend.api.users.UserService") as MockUserService:
            response = client.patch(
                "/users/me/password",
                json={"password": "p" * 73},
                headers=_bearer(),
            )

        assert response.status_code == 400
        MockUserService.return_value.update_password.assert_not_called()

    def test_remove_account(self, client, current_user):
        with patch("board_backend.api.users.UserService") as MockUserService:
            MockUserService.return_value.remove_account = AsyncMock(return_value=current_user)

            response = client.delete("/users/me", headers=_bearer())

        assert response.status_code == 204
        MockUserService.return_value.remove_account.assert_awaited_once_with("a@x.com")


# ---------------------------------------------------------------------------
# GET /dashboard/visitors
# ---------------------------------------------------------------------------

class TestDashboard:
    def test_visitor_totals(self, client):
        with patch("board_backend.api.dashboard.VisitorService") as MockVisitorService:
            svc = MockVisitorService.return_value
            svc.get_summary = AsyncMock(return_value=VisitorSummary(total_visitors=4, total_visits=19))
            svc.get_visitor_count = AsyncMock(return_value=6)

            response = client.get("/dashboard/visitors", headers=_bearer())

        assert response.status_code == 200
        assert response.json() == {"total_visitors": 4, "total_visits": 19, "my_visits": 6}
        svc.get_visitor_count.assert_awaited_once_with("a@x.com")

    def test_requires_token(self, client):
        response = client.get("/dashboard/visitors")
        assert response.status_code == 401
