from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from app.core.rate_limiter import rate_limiter
from app.database import get_db
from app.dependencies import get_current_active_user, get_current_admin, get_current_user
from app.main import app


@dataclass
class StubUser:
    id: str = "user-1"
    email: str = "user@example.com"
    is_active: bool = True
    password_hash: str = "hashed-password"


class StubSession:
    """Session stand-in for routes whose repo calls are monkeypatched."""

    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def refresh(self, obj):
        return None

    def close(self):
        return None


@pytest.fixture
def stub_user() -> StubUser:
    return StubUser()


@pytest.fixture
def admin_user() -> StubUser:
    return StubUser(id="admin-1", email="admin@example.com")


@pytest.fixture
def stub_db() -> StubSession:
    return StubSession()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def client(stub_user: StubUser, stub_db: StubSession):
    def _db_override():
        yield stub_db

    app.dependency_overrides[get_db] = _db_override
    app.dependency_overrides[get_current_user] = lambda: stub_user
    app.dependency_overrides[get_current_active_user] = lambda: stub_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(admin_user: StubUser, stub_db: StubSession):
    def _db_override():
        yield stub_db

    app.dependency_overrides[get_db] = _db_override
    app.dependency_overrides[get_current_user] = lambda: admin_user
    app.dependency_overrides[get_current_active_user] = lambda: admin_user
    app.dependency_overrides[get_current_admin] = lambda: admin_user
    yield TestClient(app)
    app.dependency_overrides.clear()
