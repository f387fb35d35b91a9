"""
tests/conftest.py -- Shared test fixtures for Taskboard.

This module provides:
  - db / user_store / task_store: isolated in-memory stores for unit tests
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests
  - register_user: factory that registers an account over HTTP and returns
    (token, user_json)
  - reset_rate_limits (autouse): clears slowapi counters between tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any app import: DEBUG so get_settings()
auto-generates SECRET_KEY, a minimal bcrypt cost so hashing does not dominate
the run, and "testserver" (TestClient's Host header) as an allowed host.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set these before any auth/core import so get_settings() sees them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import ROLE_ADMIN, Identity
from auth.store import UserStore
from auth.tokens import create_access_token
from core.database import Database
from tasks.store import TaskStore

# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Fresh in-memory database per test."""
    database = Database("sqlite:///:memory:")
    yield database
    database.close()


@pytest.fixture
def user_store(db: Database) -> UserStore:
    return UserStore(db)


@pytest.fixture
def task_store(db: Database) -> TaskStore:
    return TaskStore(db)


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Every test starts with empty rate-limit counters."""
    limiter.reset()


# ---------------------------------------------------------------------------
# API integration
# ---------------------------------------------------------------------------


def _make_shared_db(db_suffix: str) -> Database:
    """Create an isolated named shared-memory database.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return Database(f"sqlite:///file:test_taskboard_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(db: Database, user_store: UserStore, task_store: TaskStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.db = db
        app.state.user_store = user_store
        app.state.task_store = task_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    One database per test module. The admin account (admin@example.com /
    adminpass) is created before the client starts.
    """
    db = _make_shared_db(f"{request.module.__name__}_{uuid.uuid4().hex[:8]}")
    user_store = UserStore(db)
    task_store = TaskStore(db)

    admin = user_store.create_user("Admin User", "admin@example.com", "adminpass", role=ROLE_ADMIN)
    token = create_access_token(Identity(id=admin.id, email=admin.email, role=admin.role))

    app.router.lifespan_context = _patch_lifespan(db, user_store, task_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id

    db.close()


@pytest.fixture
def register_user(api_client) -> Callable[..., tuple[str, dict]]:
    """Factory: register a fresh account and return (token, user_json).

    Emails are made unique per call so tests sharing a module database never
    collide.
    """
    client, _token, _uid = api_client

    def _register(name: str = "Test User", password: str = "secret1", role: str = "user") -> tuple[str, dict]:
        email = f"user-{uuid.uuid4().hex[:10]}@example.com"
        resp = client.post(
            "/api/v1/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["token"], data["user"]

    return _register


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    return bearer
