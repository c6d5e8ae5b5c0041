"""
tests/conftest.py -- Shared test fixtures for DevConnect integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + posts/profiles
  - _patch_lifespan(): wires test stores and a fake GitHub into app.state
  - api_client: TestClient plus a pre-created member and their token
  - register_user: registers a fresh member through POST /api/users

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format shares one in-memory instance across all
connections in the same process.

Environment variables must be set before any auth/core import:
  DEBUG=true                so get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4           the bcrypt minimum -- keeps the suite fast
  RATE_LIMIT_ENABLED=false  so registration-heavy modules are not throttled
  ALLOWED_HOSTS=["testserver"]  admits the Host header TestClient sends
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from typing import Any

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.gravatar import gravatar_url
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, decode_access_token, hash_password
from core.errors import UpstreamFailure
from social.store import SocialStore

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeGitHub:
    """Stands in for core.github.GitHubClient. Knows exactly one user."""

    repos: dict[str, list[dict[str, Any]]] = {
        "octocat": [{"name": "hello-world", "html_url": "https://github.com/octocat/hello-world"}],
    }

    def fetch_repositories(self, username: str) -> list[dict[str, Any]]:
        if username not in self.repos:
            raise UpstreamFailure("No GitHub profile found")
        return self.repos[username]

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, SocialStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    social_url = f"sqlite:///file:test_social_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=users_url), SocialStore(db_url=social_url)


def _patch_lifespan(user_store: UserStore, social: SocialStore):
    """Return an async context manager that replaces the real lifespan.

    Routes see isolated test DBs and the fake GitHub client instead of the
    production database and network.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.social = social
        app.state.github = FakeGitHub()
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The member "Test User" <test@example.com> / "testpass123" exists before the
    client starts; token is a valid access token for them.
    """
    user_store, social = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    member = User(
        name="Test User",
        email="test@example.com",
        hashed_password=hash_password("testpass123"),
        avatar=gravatar_url("test@example.com"),
    )
    uid = user_store.create_user(member)
    token = create_access_token(uid)

    app.router.lifespan_context = _patch_lifespan(user_store, social)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()
    social.close()


@pytest.fixture
def register_user(api_client) -> Callable[..., tuple[str, str]]:
    """Return a function that registers a new member and yields (token, user_id)."""
    client, _token, _uid = api_client

    def _register(name: str = "Member") -> tuple[str, str]:
        email = f"{uuid.uuid4().hex[:12]}@example.com"
        resp = client.post("/api/users", json={"name": name, "email": email, "password": "secret1"})
        assert resp.status_code == 200, f"Registration failed: {resp.text}"
        token = resp.json()["token"]
        return token, decode_access_token(token)

    return _register
