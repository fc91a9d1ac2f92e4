"""Shared test fixtures for backend tests."""

import os

# Must be set before mindmate.core.config builds its settings singleton
os.environ.setdefault("MINDMATE_JWT_SECRET", "test-secret")

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from mindmate.core.database import get_session  # noqa: E402
from mindmate.core.security import create_access_token  # noqa: E402
from mindmate.models.account import Account  # noqa: E402

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def get_test_session():
    with Session(test_engine) as session:
        yield session


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import mindmate.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def engine():
    return test_engine


@pytest.fixture
def make_account():
    """Insert an account directly into the test DB and return it detached."""
    counter = iter(range(1, 1000))

    def _make(name: str | None = None, role: str = "user") -> Account:
        n = next(counter)
        with Session(test_engine) as session:
            account = Account(name=name or f"Person {n}", email=f"person{n}@example.com", role=role)
            session.add(account)
            session.commit()
            session.refresh(account)
            session.expunge(account)
            return account

    return _make


@pytest.fixture
def auth_headers():
    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(account.id)}"}

    return _headers


@pytest.fixture
def relay_engine():
    """Point the relay's own sessions at the test DB."""
    with patch("mindmate.services.relay.core.engine", test_engine):
        yield test_engine


@pytest.fixture
def client(relay_engine):
    """FastAPI TestClient wired to the in-memory database."""
    with patch("mindmate.core.database.engine", test_engine):
        from mindmate.main import app

        # Use FastAPI's dependency override for get_session
        app.dependency_overrides[get_session] = get_test_session

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()
