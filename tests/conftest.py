"""
tests/conftest.py -- Shared test fixtures for LeetShare auth tests.

This module provides:
  - FakeClock / fake_clock: a settable time source for expiry tests
  - fast_credentials: CredentialService with minimal Argon2 cost (speed only)
  - make_store(): isolated named shared-memory SQLite UserStore
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

JWT_SECRET and the rate limits must be set before any api/ or core/ import:
get_settings() validates the secret on first use and caches the result.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# CRITICAL: Set before any api/core import so get_settings() sees them.
os.environ.setdefault("JWT_SECRET", "t3st-s1gning-k3y-for-the-pytest-suite-0123456789")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("API_RATE_LIMIT", "1000/minute")

import pytest
from argon2 import PasswordHasher, Type
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.oauth_state import OAuthStateGuard
from auth.passwords import CredentialService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

TEST_SECRET = os.environ["JWT_SECRET"]

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock frozen at `now` until advance() is called."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def fast_hasher() -> PasswordHasher:
    """Argon2id with the smallest legal cost. Tests only."""
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1, type=Type.ID)


@pytest.fixture(scope="session")
def fast_credentials() -> CredentialService:
    return CredentialService(fast_hasher())


def make_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite UserStore.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserStore(f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def _patch_lifespan(services: SimpleNamespace):
    """Return a lifespan that wires pre-built test services into app.state.

    The GitHub client is a MagicMock with AsyncMock methods so no test ever
    talks to github.com; tests set its return values / side effects.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.tokens = services.tokens
        app.state.credentials = services.credentials
        app.state.oauth_states = services.oauth_states
        app.state.user_store = services.user_store
        app.state.github = services.github
        yield

    return test_lifespan


def _mock_github() -> MagicMock:
    github = MagicMock()
    github.enabled = True
    github.authorization_url = AsyncMock(
        side_effect=lambda state: f"https://github.com/login/oauth/authorize?client_id=test&state={state}"
    )
    github.exchange_code = AsyncMock(return_value={"access_token": "gho_test", "token_type": "bearer"})
    github.fetch_profile = AsyncMock()
    return github


@pytest.fixture(scope="module")
def api_client(request, fast_credentials) -> Generator[tuple[TestClient, SimpleNamespace], None, None]:
    """Yield (client, services) for API integration tests.

    services exposes tokens, credentials, oauth_states, user_store, github and
    clock so tests can inspect state or move time forward.
    """
    clock = FakeClock()
    services = SimpleNamespace(
        clock=clock,
        tokens=TokenService(get_settings().jwt_secret, clock=clock),
        credentials=fast_credentials,
        oauth_states=OAuthStateGuard(clock=clock),
        user_store=make_store(request.module.__name__.replace(".", "_")),
        github=_mock_github(),
    )
    app.router.lifespan_context = _patch_lifespan(services)
    limiter.reset()

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, services

    services.user_store.close()
