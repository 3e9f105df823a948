"""Unit tests for auth/oauth.py -- registry construction and GitHubLogin.

No network: the authorization URL is built locally from static endpoints,
and the profile fetch runs against a stub client.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest

from auth.oauth import GitHubLogin, GitHubProfile, build_oauth_registry
from core.config import Settings

REDIRECT_URI = "http://localhost:8000/api/v1/auth/github/callback"


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class _StubResponse:
    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        return self._payload


def _login_with_profile(payload: dict) -> GitHubLogin:
    async def get(path, token=None):
        assert path == "user"
        return _StubResponse(payload)

    login = GitHubLogin(build_oauth_registry(_settings()), REDIRECT_URI)
    login._client = SimpleNamespace(get=get)
    return login


def test_unconfigured_provider_is_disabled() -> None:
    login = GitHubLogin(build_oauth_registry(_settings()), REDIRECT_URI)
    assert login.enabled is False


def test_authorization_url_carries_state() -> None:
    settings = _settings(github_client_id="Iv1.testclient", github_client_secret="not-a-real-secret")
    login = GitHubLogin(build_oauth_registry(settings), REDIRECT_URI)
    assert login.enabled is True

    url = asyncio.run(login.authorization_url("abc123"))
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "github.com"
    assert query["state"] == ["abc123"]
    assert query["client_id"] == ["Iv1.testclient"]
    assert query["redirect_uri"] == [REDIRECT_URI]


def test_fetch_profile_normalizes_id() -> None:
    login = _login_with_profile({"id": 583231, "login": "octocat", "avatar_url": "https://a.test/1"})
    profile = asyncio.run(login.fetch_profile({"access_token": "gho_x"}))
    assert profile == GitHubProfile(github_id="583231", login="octocat", avatar_url="https://a.test/1")


def test_fetch_profile_without_id_raises() -> None:
    login = _login_with_profile({"login": "octocat"})
    with pytest.raises(ValueError):
        asyncio.run(login.fetch_profile({"access_token": "gho_x"}))
