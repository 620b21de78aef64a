"""
Tests for authentication endpoints (signup and login).

These tests verify:
  - Successful signup creates a user and returns a JWT
  - Duplicate email signup is rejected (409 Conflict)
  - Successful login returns a valid JWT
  - Wrong password is rejected (401 Unauthorized)
  - Non-existent email is rejected with the same error (anti-enumeration)
  - Short passwords and malformed emails are rejected (422)
  - Ledger endpoints require a valid bearer token
"""


# ---------------------------------------------------------------------------
# Signup Tests
# ---------------------------------------------------------------------------

class TestSignup:
    """Tests for POST /auth/signup."""

    async def test_signup_success(self, client):
        """A valid signup should return 201 with user_id, email, and token."""
        response = await client.post(
            "/auth/signup",
            json={"email": "newuser@example.com", "password": "StrongPass99!"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["token_type"] == "bearer"
        assert "token" in data
        assert "user_id" in data

    async def test_signup_duplicate_email(self, client):
        """Signing up twice with the same email should return 409."""
        payload = {"email": "dup@example.com", "password": "StrongPass99!"}
        await client.post("/auth/signup", json=payload)

        response = await client.post("/auth/signup", json=payload)
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

    async def test_signup_short_password(self, client):
        """Passwords under 8 characters are rejected."""
        response = await client.post(
            "/auth/signup",
            json={"email": "short@example.com", "password": "abc"},
        )
        assert response.status_code == 422

    async def test_signup_invalid_email(self, client):
        response = await client.post(
            "/auth/signup",
            json={"email": "not-an-email", "password": "StrongPass99!"},
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Login Tests
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_success(self, client):
        """Correct credentials return a token that works on ledger endpoints."""
        await client.post(
            "/auth/signup",
            json={"email": "login@example.com", "password": "StrongPass99!"},
        )

        response = await client.post(
            "/auth/login",
            json={"email": "login@example.com", "password": "StrongPass99!"},
        )
        assert response.status_code == 200
        token = response.json()["token"]

        accounts = await client.get(
            "/accounts", headers={"Authorization": f"Bearer {token}"}
        )
        assert accounts.status_code == 200

    async def test_login_wrong_password(self, client):
        await client.post(
            "/auth/signup",
            json={"email": "wrongpw@example.com", "password": "StrongPass99!"},
        )
        response = await client.post(
            "/auth/login",
            json={"email": "wrongpw@example.com", "password": "WrongPass99!"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_login_unknown_email_same_error(self, client):
        """Unknown emails get the same message as a wrong password."""
        response = await client.post(
            "/auth/login",
            json={"email": "ghost@example.com", "password": "StrongPass99!"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"


# ---------------------------------------------------------------------------
# Token enforcement
# ---------------------------------------------------------------------------

class TestTokenRequired:

    async def test_missing_token(self, client):
        response = await client.get("/movements")
        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get(
            "/accounts", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
