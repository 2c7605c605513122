"""
tests/conftest.py -- Shared test fixtures for StudentGate.

This module provides:
  - make_backend(): isolated named shared-memory SQLite engine + stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - backend: function-scoped local backend for store/client unit tests
  - web_client / api_client: TestClient fixtures (one per test module)

Fakes for the backend protocols live in tests/fakes.py.

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.client import LoginThrottle
from auth.limiter import limiter
from auth.store import AccountStore, DocumentStore, make_engine

_db_counter = itertools.count()


# ---------------------------------------------------------------------------
# Backend helpers
# ---------------------------------------------------------------------------


class Backend:
    """Bundle of real local-backend objects sharing one engine."""

    def __init__(self, db_url: str, max_failures: int = 5) -> None:
        self.engine = make_engine(db_url)
        self.accounts = AccountStore(self.engine)
        self.documents = DocumentStore(self.engine)
        self.throttle = LoginThrottle(max_failures=max_failures, window_seconds=300)

    def close(self) -> None:
        self.engine.dispose()


def make_backend(name: str = "unit", max_failures: int = 5) -> Backend:
    """Create a Backend on a fresh named shared-memory SQLite database."""
    suffix = f"{name}_{next(_db_counter)}"
    return Backend(
        f"sqlite:///file:test_{suffix}?mode=memory&cache=shared&uri=true",
        max_failures=max_failures,
    )


def _patch_lifespan(backend: Backend):
    """Return a lifespan that installs the given backend on app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = backend.engine
        app.state.account_store = backend.accounts
        app.state.documents = backend.documents
        app.state.login_throttle = backend.throttle
        yield

    return test_lifespan


@pytest.fixture
def backend() -> Generator[Backend, None, None]:
    b = make_backend()
    yield b
    b.close()


# ---------------------------------------------------------------------------
# Rate limiter -- fresh counters for every test
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    limiter.reset()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def web_client() -> Generator[TestClient, None, None]:
    """TestClient for web routes with follow_redirects=False.

    Web tests assert on redirect locations (e.g. 302 to /profile-setup),
    which are invisible once the client follows the redirect.
    """
    b = make_backend("web")
    app.router.lifespan_context = _patch_lifespan(b)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client
    b.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    b = make_backend("api")
    app.router.lifespan_context = _patch_lifespan(b)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
    b.close()
