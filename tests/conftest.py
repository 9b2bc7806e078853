"""Shared fixtures.

The environment is pinned before the application is imported so the engine
binds to an in-memory SQLite database.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SMTP_HOST"] = ""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from taskio.db.session import engine
from taskio.main import app
from taskio.models import Task, User  # noqa: F401
from taskio.services.auth import hash_password

TEST_PASSWORD = "Str0ng!Pass"


class FakeClock:
    """Manually advanced clock for time-dependent logic."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2030, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _fresh_state():
    """Recreate tables and clear in-process state around every test."""
    SQLModel.metadata.create_all(engine)
    app.state.login_throttle.reset()
    app.state.rate_limiter.reset()
    yield
    app.dependency_overrides.clear()
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    return TestClient(app)


def make_user(session: Session, email: str = "ana@example.com", password: str = TEST_PASSWORD) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name="Ana",
        last_name="Gomez",
        age=30,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session: Session) -> User:
    return make_user(db_session)


@pytest.fixture
def auth_client(client: TestClient, test_user: User) -> TestClient:
    """A client holding a session cookie for test_user."""
    res = client.post("/api/login", json={"email": test_user.email, "password": TEST_PASSWORD})
    assert res.status_code == 200
    return client


def future_slot(**delta) -> dict[str, str]:
    """Return date/time strings for an instant offset from now (UTC)."""
    due = datetime.utcnow() + timedelta(**(delta or {"days": 1}))
    return {"date": due.strftime("%Y-%m-%d"), "time": due.strftime("%H:%M:%S")}
