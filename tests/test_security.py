"""
Unit tests for security module and role checks on the API
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient
from jose import jwt

from app.core.exceptions import AuthenticationError
from app.core.security import security_manager
from app.config import settings


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing functionality"""

    def test_hash_password(self):
        password = "TestPassword123!"
        hashed = security_manager.hash_password(password)

        assert hashed != password
        assert "$2b$" in hashed  # bcrypt hash prefix

    def test_verify_password(self):
        hashed = security_manager.hash_password("TestPassword123!")

        assert security_manager.verify_password("TestPassword123!", hashed) is True
        assert security_manager.verify_password("WrongPassword123!", hashed) is False


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token functionality"""

    def test_decode_valid_token(self):
        data = {"sub": "user123", "role": "USER"}
        token = security_manager.create_access_token(data)
        decoded = security_manager.decode_token(token)

        assert decoded["sub"] == "user123"
        assert decoded["role"] == "USER"
        assert decoded["type"] == "access"
        assert "exp" in decoded

    def test_decode_expired_token(self):
        token = security_manager.create_access_token(
            {"sub": "user123"}, expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(AuthenticationError):
            security_manager.decode_token(token)

    def test_decode_invalid_token(self):
        with pytest.raises(AuthenticationError):
            security_manager.decode_token("invalid.token.here")

    def test_token_signed_with_other_key_rejected(self):
        token = jwt.encode(
            {"sub": "user123", "type": "access"},
            "some-other-secret-key-of-sufficient-length",
            algorithm=settings.JWT_ALGORITHM
        )

        with pytest.raises(AuthenticationError):
            security_manager.decode_token(token)

    def test_non_access_token_rejected(self):
        token = jwt.encode(
            {"sub": "user123", "type": "refresh"},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

        with pytest.raises(AuthenticationError):
            security_manager.decode_token(token)

    def test_token_expiration_time(self):
        token = security_manager.create_access_token({"sub": "user123"}, timedelta(minutes=15))
        decoded = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        exp_time = datetime.fromtimestamp(decoded["exp"], tz=timezone.utc)
        time_diff = exp_time - datetime.now(timezone.utc)

        # Allow 1 second tolerance for test execution time
        assert 14 * 60 <= time_diff.total_seconds() <= 15 * 60 + 1


class TestRoleChecks:
    """Authentication and role enforcement on endpoints"""

    @pytest.mark.asyncio
    async def test_missing_token_is_unauthorized(self, client: AsyncClient):
        response = await client.get("/api/v1/bookings/")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTH_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_user_is_unauthorized(self, client: AsyncClient):
        token = security_manager.create_access_token(
            {"sub": "00000000-0000-0000-0000-000000000000", "role": "USER"}
        )
        response = await client.get("/api/v1/bookings/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user_is_unauthorized(self, client: AsyncClient, db_session, test_user, auth_headers_user):
        test_user.is_active = False
        await db_session.commit()

        response = await client.get("/api/v1/bookings/", headers=auth_headers_user)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_user_cannot_create_venue(self, client: AsyncClient, auth_headers_user):
        response = await client.post(
            "/api/v1/venues/",
            json={"name": "Hall", "location": "Auckland", "capacity": 10, "price_per_day": "50.00"},
            headers=auth_headers_user
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_FORBIDDEN"

    @pytest.mark.asyncio
    async def test_admin_cannot_book_venue(self, client: AsyncClient, test_venue, auth_headers_admin, standard_services):
        response = await client.post(
            f"/api/v1/venues/{test_venue.id}/book",
            json={
                "eventName": "Gala",
                "eventCategory": "corporate",
                "startDate": "2025-01-01",
                "endDate": "2025-01-03",
                "guests": 10,
                "services": standard_services
            },
            headers=auth_headers_admin
        )
        assert response.status_code == 403


class TestRateLimits:
    """Per-client request limit on every API route"""

    @pytest.fixture
    def limiter_calls(self, monkeypatch):
        from app.core.redis import redis_manager

        calls = []
        state = {"limited": False}

        async def fake_is_rate_limited(key, limit, window=60):
            calls.append((key, limit, window))
            return state["limited"], limit + 1 if state["limited"] else 1

        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(redis_manager, "is_rate_limited", fake_is_rate_limited)
        return calls, state

    @pytest.mark.asyncio
    async def test_requests_under_limit_pass(self, client: AsyncClient, limiter_calls):
        calls, _ = limiter_calls

        response = await client.get("/api/v1/venues/")

        assert response.status_code == 200
        assert calls == [("client:127.0.0.1", settings.RATE_LIMIT_PER_MINUTE, 60)]

    @pytest.mark.asyncio
    async def test_anonymous_route_over_limit_is_rejected(self, client: AsyncClient, limiter_calls):
        _, state = limiter_calls
        state["limited"] = True

        response = await client.get("/api/v1/venues/search")

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"
