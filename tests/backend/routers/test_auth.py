"""Tests for authentication router."""

from datetime import timedelta

from fastapi.testclient import TestClient

from backend.core.security import create_access_token, decode_access_token, verify_password
from backend.models.user import User, UserRole


def test_signup_success(test_client: TestClient, test_db_session):
    """Test successful user signup."""
    signup_data = {
        "name": "Jo Doe",
        "email": "A@B.com",
        "password": "longenough1",
    }

    response = test_client.post("/api/auth/sign-up", json=signup_data)

    assert response.status_code == 201
    assert response.headers["content-type"] == "application/json"
    assert "token=" in response.headers["set-cookie"]
    assert "HttpOnly" in response.headers["set-cookie"]

    data = response.json()
    assert data["message"] == "User registered successfully"
    user_data = data["user"]
    assert user_data["email"] == "a@b.com"
    assert user_data["name"] == "Jo Doe"
    assert user_data["role"] == "user"
    assert isinstance(user_data["id"], int)
    assert "created_at" in user_data
    assert "updated_at" in user_data
    assert "password" not in user_data
    assert "password_hash" not in user_data

    # Verify user was created in database
    user = test_db_session.query(User).filter(User.email == "a@b.com").first()
    assert user is not None
    assert user.role is UserRole.USER
    assert verify_password("longenough1", user.password_hash) is True


def test_signup_cookie_carries_token(test_client: TestClient):
    """Test that the signup cookie holds a token for the new user."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "jo@example.com", "password": "longenough1"},
    )

    claims = decode_access_token(response.cookies["token"])
    assert claims is not None
    assert claims.id == response.json()["user"]["id"]
    assert claims.email == "jo@example.com"
    assert claims.role is UserRole.USER


def test_signup_duplicate_email(test_client: TestClient):
    """Test signup with duplicate email returns 409."""
    signup_data = {
        "name": "Jo Doe",
        "email": "A@B.com",
        "password": "longenough1",
    }

    response1 = test_client.post("/api/auth/sign-up", json=signup_data)
    assert response1.status_code == 201

    response2 = test_client.post("/api/auth/sign-up", json=signup_data)
    assert response2.status_code == 409
    assert response2.json()["message"] == "Email already exists"


def test_signup_duplicate_email_different_case(test_client: TestClient, create_user):
    """Test that signup rejects an email differing only in case."""
    create_user(email="case@example.com", password="longenough1", name="Case User")

    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Other", "email": "CASE@Example.com", "password": "longenough1"},
    )

    assert response.status_code == 409


def test_signup_admin_role(test_client: TestClient):
    """Test that signup may request the admin role."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Ada Admin", "email": "ada@example.com", "password": "longenough1", "role": "admin"},
    )

    assert response.status_code == 201
    assert response.json()["user"]["role"] == "admin"


def test_signup_invalid_role(test_client: TestClient):
    """Test that an unknown role is a validation error on the role field."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "jo@example.com", "password": "longenough1", "role": "root"},
    )

    assert response.status_code == 400
    assert any(detail["field"] == "role" for detail in response.json()["details"])


def test_signup_invalid_email(test_client: TestClient):
    """Test signup with invalid email format returns 400 with field details."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "invalid-email", "password": "longenough1"},
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation failed"
    assert any(detail["field"] == "email" for detail in data["details"])


def long_email(last_label: int) -> str:
    """Build a syntactically valid email whose length grows with ``last_label``."""
    return "a" * 64 + "@" + "b" * 63 + "." + "c" * 63 + "." + "d" * last_label + ".com"


def test_signup_email_at_max_length(test_client: TestClient):
    """Test that a 254-character email is accepted."""
    email = long_email(57)
    assert len(email) == 254

    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": email, "password": "longenough1"},
    )

    assert response.status_code == 201
    assert response.json()["user"]["email"] == email


def test_signup_email_too_long(test_client: TestClient):
    """Test that an email longer than 255 characters is a validation error."""
    email = long_email(59)
    assert len(email) == 256

    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": email, "password": "longenough1"},
    )

    assert response.status_code == 400
    assert any(detail["field"] == "email" for detail in response.json()["details"])


def test_signup_password_length_bounds(test_client: TestClient):
    """Test that passwords must be between 8 and 128 characters."""
    too_short = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "short@example.com", "password": "short"},
    )
    too_long = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "long@example.com", "password": "x" * 129},
    )
    minimum = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "min@example.com", "password": "12345678"},
    )

    assert too_short.status_code == 400
    assert any(detail["field"] == "password" for detail in too_short.json()["details"])
    assert too_long.status_code == 400
    assert minimum.status_code == 201


def test_signin_long_password_checks_every_byte(test_client: TestClient):
    """Test that a password past bcrypt's 72-byte window must match in full."""
    password = "p" * 72 + "-real-tail"
    test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "long@example.com", "password": password},
    )

    wrong = test_client.post(
        "/api/auth/sign-in",
        json={"email": "long@example.com", "password": "p" * 72 + "-fake-tail"},
    )
    right = test_client.post(
        "/api/auth/sign-in",
        json={"email": "long@example.com", "password": password},
    )

    assert wrong.status_code == 401
    assert right.status_code == 200


def test_signup_name_normalization(test_client: TestClient, test_db_session):
    """Test that name is normalized (whitespace stripped) during signup."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "  Jo Doe  ", "email": "normalized@example.com", "password": "longenough1"},
    )

    assert response.status_code == 201
    assert response.json()["user"]["name"] == "Jo Doe"


def test_signup_name_too_short_after_trim(test_client: TestClient):
    """Test that the name length is checked after trimming."""
    response = test_client.post(
        "/api/auth/sign-up",
        json={"name": "  J  ", "email": "j@example.com", "password": "longenough1"},
    )

    assert response.status_code == 400


def test_signup_missing_fields(test_client: TestClient):
    """Test signup with missing required fields returns 400."""
    assert test_client.post("/api/auth/sign-up", json={"password": "longenough1", "name": "Jo Doe"}).status_code == 400
    assert test_client.post("/api/auth/sign-up", json={"email": "a@example.com", "name": "Jo Doe"}).status_code == 400
    assert test_client.post("/api/auth/sign-up", json={"email": "a@example.com", "password": "longenough1"}).status_code == 400


def test_signin_success(test_client: TestClient, create_user):
    """Test successful user login."""
    user, _ = create_user(email="login@example.com", password="testpassword123", name="Login User")

    response = test_client.post(
        "/api/auth/sign-in",
        json={"email": "Login@Example.com", "password": "testpassword123"},
    )

    assert response.status_code == 200
    assert "token=" in response.headers["set-cookie"]
    data = response.json()
    assert data["message"] == "User signed in successfully"
    assert data["user"]["id"] == user.id
    assert data["user"]["email"] == "login@example.com"
    assert data["user"]["role"] == "user"


def test_signup_then_signin_same_id(test_client: TestClient):
    """Test that signing in with fresh credentials yields the signed-up user."""
    credentials = {"email": "roundtrip@example.com", "password": "longenough1"}
    created = test_client.post("/api/auth/sign-up", json={"name": "Round Trip", **credentials})

    signed_in = test_client.post("/api/auth/sign-in", json=credentials)

    assert signed_in.status_code == 200
    assert signed_in.json()["user"]["id"] == created.json()["user"]["id"]


def test_signin_invalid_email(test_client: TestClient):
    """Test login with non-existent email returns 401."""
    response = test_client.post(
        "/api/auth/sign-in",
        json={"email": "nonexistent@example.com", "password": "testpassword123"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"
    assert "set-cookie" not in response.headers


def test_signin_invalid_password(test_client: TestClient, create_user):
    """Test login with wrong password returns the same 401 as an unknown email."""
    create_user(email="login@example.com", password="correctpassword123", name="Wrong Pass User")

    response = test_client.post(
        "/api/auth/sign-in",
        json={"email": "login@example.com", "password": "wrongpassword123"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_signin_empty_password(test_client: TestClient, create_user):
    """Test login with empty password is a validation error."""
    create_user(email="emptypass@example.com", password="testpassword123", name="Empty Pass User")

    response = test_client.post(
        "/api/auth/sign-in",
        json={"email": "emptypass@example.com", "password": ""},
    )

    assert response.status_code == 400


def test_signin_invalid_email_format(test_client: TestClient):
    """Test that signin with a malformed email returns 400."""
    response = test_client.post("/api/auth/sign-in", json={"email": "invalid-email", "password": "x"})

    assert response.status_code == 400


def test_signout_clears_cookie(test_client: TestClient):
    """Test that sign-out always succeeds and expires the cookie."""
    test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "jo@example.com", "password": "longenough1"},
    )

    response = test_client.post("/api/auth/sign-out")

    assert response.status_code == 200
    assert response.json()["message"] == "User signed out successfully"
    header = response.headers["set-cookie"]
    assert header.startswith("token=")
    assert "Max-Age=0" in header

    assert test_client.get("/api/auth/me").status_code == 401


def test_signout_without_session(test_client: TestClient):
    """Test that sign-out is idempotent."""
    assert test_client.post("/api/auth/sign-out").status_code == 200
    assert test_client.post("/api/auth/sign-out").status_code == 200


def test_me_after_signup(test_client: TestClient):
    """Test that /me returns the signed-up identity."""
    created = test_client.post(
        "/api/auth/sign-up",
        json={"name": "Jo Doe", "email": "jo@example.com", "password": "longenough1"},
    )

    response = test_client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["user"] == {
        "id": created.json()["user"]["id"],
        "name": "Jo Doe",
        "email": "jo@example.com",
        "role": "user",
    }


def test_me_unauthenticated(test_client: TestClient):
    """Test that /me without a session returns 401."""
    response = test_client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"


def test_me_expired_token(test_client: TestClient, create_user, session_cookie):
    """Test that /me with an expired token returns 401."""
    user, _ = create_user(email="expired@example.com", password="longenough1", name="Expired")
    token = create_access_token(
        {"id": user.id, "email": user.email, "role": user.role},
        expires_delta=timedelta(seconds=-1),
    )

    response = test_client.get("/api/auth/me", headers=session_cookie(token))

    assert response.status_code == 401


def test_me_tampered_token(test_client: TestClient, create_user, session_cookie):
    """Test that /me with a tampered token returns 401."""
    _, token = create_user(email="tamper@example.com", password="longenough1", name="Tamper")
    position = len(token) - 10
    tampered = token[:position] + ("A" if token[position] != "A" else "B") + token[position + 1 :]

    response = test_client.get("/api/auth/me", headers=session_cookie(tampered))

    assert response.status_code == 401
