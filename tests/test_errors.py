"""Tests for centralized error mapping and request rate limiting."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from taskio.api.rate_limit import FixedWindowCounter
from taskio.main import app


class TestErrorMapping:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        assert res.json() == {"status": "healthy"}

    def test_validation_error_format(self, client):
        """Malformed bodies become 400 with one message per field."""
        res = client.post("/api/signup", json={"firstName": "Ana", "age": "old"})
        assert res.status_code == 400
        body = res.json()
        assert body["detail"] == "Validation error"
        assert any(msg.startswith("age:") for msg in body["errors"])
        assert any(msg.startswith("email:") for msg in body["errors"])

    def test_unexpected_error_is_generic_500(self, auth_client, monkeypatch):
        """Internal failures reach the client without details."""
        def boom(*args, **kwargs):
            raise RuntimeError("database exploded: secret connection string")

        monkeypatch.setattr("taskio.api.tasks.get_user_tasks", boom)
        client = TestClient(app, raise_server_exceptions=False, cookies=auth_client.cookies)

        res = client.get("/api/tasks")
        assert res.status_code == 500
        assert res.json() == {"detail": "Internal server error"}

    def test_integrity_error_is_409(self, auth_client, monkeypatch):
        """A unique-constraint race surfacing from the store maps to conflict."""
        def race(*args, **kwargs):
            raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr("taskio.api.profile.update_profile", race)
        res = auth_client.put(
            "/api/profile",
            json={"firstName": "Ana", "lastName": "Gomez", "age": 30, "email": "ana@example.com"},
        )
        assert res.status_code == 409
        assert res.json() == {"detail": "Duplicate value"}

    def test_unknown_route(self, client):
        assert client.get("/api/nothing-here").status_code == 404


class TestFixedWindowCounter:
    def test_allows_up_to_limit(self):
        now = [0.0]
        counter = FixedWindowCounter(max_requests=3, window_seconds=60, clock=lambda: now[0])

        assert [counter.hit("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_window_rolls_over(self):
        now = [0.0]
        counter = FixedWindowCounter(max_requests=1, window_seconds=60, clock=lambda: now[0])
        assert counter.hit("1.2.3.4") is True
        assert counter.hit("1.2.3.4") is False

        now[0] = 60.0
        assert counter.hit("1.2.3.4") is True

    def test_keys_are_independent(self):
        counter = FixedWindowCounter(max_requests=1, window_seconds=60)
        assert counter.hit("1.2.3.4") is True
        assert counter.hit("5.6.7.8") is True

    def test_expired_windows_are_evicted(self):
        """Clients that stop sending requests do not stay in memory."""
        now = [0.0]
        counter = FixedWindowCounter(max_requests=5, window_seconds=60, clock=lambda: now[0])
        for address in ("1.2.3.4", "5.6.7.8", "9.9.9.9"):
            counter.hit(address)
        assert len(counter) == 3

        now[0] = 61.0
        counter.hit("10.0.0.1")
        assert len(counter) == 1

    def test_live_windows_survive_a_sweep(self):
        now = [0.0]
        counter = FixedWindowCounter(max_requests=1, window_seconds=60, clock=lambda: now[0])
        counter.hit("1.2.3.4")
        now[0] = 30.0
        counter.hit("5.6.7.8")

        now[0] = 70.0
        counter.hit("9.9.9.9")
        assert len(counter) == 2
        # 5.6.7.8 is still inside its window and already at the limit
        assert counter.hit("5.6.7.8") is False


class TestRateLimitMiddleware:
    @pytest.fixture
    def small_limit(self, monkeypatch):
        monkeypatch.setattr(app.state.rate_limiter, "max_requests", 2)

    def test_over_limit_gets_429(self, client, small_limit):
        assert client.get("/").status_code == 200
        assert client.get("/").status_code == 200

        res = client.get("/")
        assert res.status_code == 429
        assert res.json() == {"detail": "Too many requests, please try again later."}

    def test_preflight_not_counted(self, client, small_limit):
        for _ in range(5):
            client.options(
                "/api/tasks",
                headers={
                    "Origin": "http://localhost:5173",
                    "Access-Control-Request-Method": "GET",
                },
            )
        assert client.get("/").status_code == 200
