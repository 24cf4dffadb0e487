"""
Integration tests for the user account endpoints.

Covers registration, login, the profile endpoints and the password change
flow against the real Flask app and an in-memory database.

Key Concepts Demonstrated:
- Register -> login -> authenticated call flow
- Boundary testing on password length
- Uniform error messages for login failures
"""

from __future__ import annotations

import pytest

from tests.conftest import DEFAULT_PASSWORD, auth_headers
from tracker_app.tokens import decode_token

pytestmark = pytest.mark.integration


def _register(client, name="A", email="a@x.com", password="longenough1"):
    return client.post(
        "/api/user/register", json={"name": name, "email": email, "password": password}
    )


class TestRegister:
    """Tests for POST /api/user/register."""

    def test_register_returns_token_and_user(self, client, db_session, token_settings):
        # Act
        response = _register(client)

        # Assert
        assert response.status_code == 201
        data = response.get_json()
        assert data["success"] is True
        assert data["user"]["name"] == "A"
        assert data["user"]["email"] == "a@x.com"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert decode_token(data["token"], token_settings)["id"] == data["user"]["id"]

    def test_register_with_eight_character_password_succeeds(self, client, db_session):
        response = _register(client, password="12345678")
        assert response.status_code == 201

    def test_register_with_seven_character_password_fails(self, client, db_session):
        # Act
        response = _register(client, password="1234567")

        # Assert
        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_failed"

    def test_register_duplicate_email_returns_409(self, client, db_session):
        # Arrange
        _register(client)

        # Act
        response = _register(client, name="B", email="A@X.com")

        # Assert
        assert response.status_code == 409
        assert response.get_json() == {
            "success": False,
            "error": "conflict",
            "message": "User already exists.",
        }

    def test_register_with_invalid_email_returns_400(self, client, db_session):
        response = _register(client, email="not-an-email")
        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/user/login."""

    def test_register_then_login_issues_token_for_same_user(
        self, client, db_session, token_settings
    ):
        # Arrange
        registered = _register(client).get_json()

        # Act
        response = client.post(
            "/api/user/login", json={"email": "a@x.com", "password": "longenough1"}
        )

        # Assert
        assert response.status_code == 200
        data = response.get_json()
        assert data["user"] == registered["user"]
        assert decode_token(data["token"], token_settings)["id"] == registered["user"]["id"]

    def test_login_is_case_insensitive_on_email(self, client, user_one):
        response = client.post(
            "/api/user/login", json={"email": "ONE@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200

    def test_two_logins_yield_distinct_tokens(self, client, user_one):
        # Act
        first = client.post(
            "/api/user/login", json={"email": "one@example.com", "password": DEFAULT_PASSWORD}
        )
        second = client.post(
            "/api/user/login", json={"email": "one@example.com", "password": DEFAULT_PASSWORD}
        )

        # Assert
        assert first.get_json()["token"] != second.get_json()["token"]

    @pytest.mark.parametrize(
        ("email", "password"),
        [("one@example.com", "WrongPass123!"), ("nobody@example.com", DEFAULT_PASSWORD)],
    )
    def test_login_failures_share_one_message(self, client, user_one, email, password):
        """Test that unknown email and wrong password are indistinguishable."""
        # Act
        response = client.post("/api/user/login", json={"email": email, "password": password})

        # Assert
        assert response.status_code == 401
        assert response.get_json() == {
            "success": False,
            "error": "invalid_credentials",
            "message": "Invalid credentials.",
        }

    def test_login_with_missing_password_returns_400(self, client, db_session):
        response = client.post("/api/user/login", json={"email": "a@x.com"})
        assert response.status_code == 400


class TestProfile:
    """Tests for GET/PUT /api/user/me."""

    def test_get_me_returns_profile(self, client, api_headers, user_one):
        # Act
        response = client.get("/api/user/me", headers=api_headers)

        # Assert
        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "user": {"id": user_one.id, "name": "User One", "email": "one@example.com"},
        }

    def test_get_me_without_token_returns_401(self, client, db_session):
        response = client.get("/api/user/me")
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthenticated"

    def test_update_profile(self, client, api_headers, user_one):
        # Act
        response = client.put(
            "/api/user/me",
            json={"name": "Renamed", "email": "Renamed@Example.com"},
            headers=api_headers,
        )

        # Assert
        assert response.status_code == 200
        assert response.get_json()["user"] == {
            "id": user_one.id,
            "name": "Renamed",
            "email": "renamed@example.com",
        }

    def test_update_profile_keeping_own_email_succeeds(self, client, api_headers):
        response = client.put(
            "/api/user/me",
            json={"name": "Same Email", "email": "one@example.com"},
            headers=api_headers,
        )
        assert response.status_code == 200

    def test_update_profile_with_taken_email_returns_409(self, client, api_headers, user_two):
        # Act
        response = client.put(
            "/api/user/me",
            json={"name": "Thief", "email": "two@example.com"},
            headers=api_headers,
        )

        # Assert
        assert response.status_code == 409
        assert response.get_json()["message"] == "Email already in use by another account."


class TestPasswordChange:
    """Tests for PUT /api/user/password."""

    def test_change_password_then_login_with_new_one(self, client, api_headers):
        # Act
        response = client.put(
            "/api/user/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "BrandNew123"},
            headers=api_headers,
        )

        # Assert
        assert response.status_code == 200
        assert response.get_json() == {"success": True, "message": "Password changed."}
        old_login = client.post(
            "/api/user/login", json={"email": "one@example.com", "password": DEFAULT_PASSWORD}
        )
        new_login = client.post(
            "/api/user/login", json={"email": "one@example.com", "password": "BrandNew123"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

    def test_change_password_with_wrong_current_password_returns_401(self, client, api_headers):
        # Act
        response = client.put(
            "/api/user/password",
            json={"currentPassword": "not-my-password", "newPassword": "BrandNew123"},
            headers=api_headers,
        )

        # Assert
        assert response.status_code == 401
        assert response.get_json()["error"] == "invalid_credentials"

    def test_change_password_with_short_new_password_returns_400(self, client, api_headers):
        response = client.put(
            "/api/user/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "short"},
            headers=api_headers,
        )
        assert response.status_code == 400


def test_full_account_flow(client, db_session):
    """Register, then use the issued token straight away for task calls."""
    # Arrange
    token = _register(client).get_json()["token"]
    headers = auth_headers(token)

    # Act
    created = client.post("/api/tasks", json={"title": "First"}, headers=headers)
    listed = client.get("/api/tasks", headers=headers)

    # Assert
    assert created.status_code == 201
    assert [task["title"] for task in listed.get_json()["tasks"]] == ["First"]
