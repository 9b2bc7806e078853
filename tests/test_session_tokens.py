"""Tests for session token issuing and request authentication."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from taskio.api.deps import authenticate_request
from taskio.config import get_settings
from taskio.services.auth import create_session_token, decode_session_token

settings = get_settings()


class TestSessionToken:
    def test_round_trip(self):
        """A fresh token decodes back to the same identity and expiry."""
        user_id = uuid4()
        token, expires_at = create_session_token(user_id, "ana@example.com")

        identity = decode_session_token(token)

        assert identity.user_id == user_id
        assert identity.email == "ana@example.com"
        assert identity.expires_at == expires_at.replace(microsecond=0)

    def test_expires_after_two_hours(self):
        now = datetime(2031, 1, 1, 8, 0, 0)
        _, expires_at = create_session_token(uuid4(), "ana@example.com", now=now)
        assert expires_at == datetime(2031, 1, 1, 10, 0, 0)

    def test_expired_token_rejected(self):
        token, _ = create_session_token(
            uuid4(), "ana@example.com", now=datetime.utcnow() - timedelta(hours=3)
        )
        with pytest.raises(ExpiredSignatureError):
            decode_session_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "email": "ana@example.com",
             "exp": datetime.utcnow() + timedelta(hours=1)},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(JWTError):
            decode_session_token(token)

    def test_missing_claims_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "exp": datetime.utcnow() + timedelta(hours=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(JWTError):
            decode_session_token(token)

    def test_non_uuid_subject_rejected(self):
        token = jwt.encode(
            {"sub": "42", "email": "ana@example.com",
             "exp": datetime.utcnow() + timedelta(hours=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(JWTError):
            decode_session_token(token)


class TestAuthenticateRequest:
    def test_preflight_passes_without_token(self):
        """OPTIONS requests are let through with no identity."""
        assert authenticate_request("OPTIONS", None) is None

    def test_missing_token(self):
        with pytest.raises(HTTPException) as exc_info:
            authenticate_request("GET", None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Access denied, token missing"

    def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc_info:
            authenticate_request("GET", "not.a.token")
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"

    def test_expired_and_invalid_share_response(self):
        """Expired tokens are reported the same way as tampered ones."""
        token, _ = create_session_token(
            uuid4(), "ana@example.com", now=datetime.utcnow() - timedelta(hours=3)
        )
        with pytest.raises(HTTPException) as exc_info:
            authenticate_request("GET", token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"

    def test_valid_token(self):
        user_id = uuid4()
        token, _ = create_session_token(user_id, "ana@example.com")
        identity = authenticate_request("GET", token)
        assert identity.user_id == user_id


class TestProtectedRoutes:
    def test_cors_preflight_needs_no_cookie(self, client):
        """A browser preflight to a protected route is answered without a session."""
        res = client.options(
            "/api/tasks",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert res.headers["access-control-allow-credentials"] == "true"

    def test_protected_route_without_cookie(self, client):
        res = client.get("/api/tasks")
        assert res.status_code == 401
        assert res.json()["detail"] == "Access denied, token missing"

    def test_protected_route_with_expired_cookie(self, client, test_user):
        token, _ = create_session_token(
            test_user.id, test_user.email, now=datetime.utcnow() - timedelta(hours=3)
        )
        client.cookies.set("token", token)
        res = client.get("/api/tasks")
        assert res.status_code == 401
        assert res.json()["detail"] == "Invalid or expired token"

    def test_token_for_deleted_user(self, client):
        """A valid token whose user no longer exists cannot load a profile."""
        token, _ = create_session_token(uuid4(), "ghost@example.com")
        client.cookies.set("token", token)
        res = client.get("/api/profile")
        assert res.status_code == 404
