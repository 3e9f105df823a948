"""
auth/oauth.py -- Authlib GitHub OAuth client.

Builds an authlib registry from Settings and wraps the GitHub client in
GitHubLogin, which exposes the three steps the login routes need:

  authorization_url(state) -> URL to redirect the browser to
  exchange_code(code)      -> GitHub access token dict
  fetch_profile(token)     -> GitHubProfile (stable numeric ID, login, avatar)

CSRF protection:
  The state parameter is NOT kept in a session cookie. It is issued and
  consumed by auth.oauth_state.OAuthStateGuard; the callback route verifies
  it before exchange_code() is ever called, so a forged callback never
  reaches GitHub's token endpoint.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from authlib.integrations.starlette_client import OAuth

from core.config import Settings

logger = logging.getLogger("leetshare.auth.oauth")

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def build_oauth_registry(settings: Settings) -> OAuth:
    """Return an authlib registry with GitHub registered when configured.

    GitHub has no OIDC discovery document, so its endpoints are static.
    """
    oauth = OAuth()
    if settings.github_enabled:
        oauth.register(
            name="github",
            client_id=settings.github_client_id,
            client_secret=settings.github_client_secret,
            access_token_url="https://github.com/login/oauth/access_token",  # noqa: S106 -- URL, not a password
            authorize_url="https://github.com/login/oauth/authorize",
            api_base_url="https://api.github.com/",
            client_kwargs={"scope": "read:user"},
        )
        logger.info("GitHub OAuth provider registered")
    else:
        logger.info("GitHub OAuth provider not configured")
    return oauth


# ---------------------------------------------------------------------------
# GitHub login flow
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GitHubProfile:
    github_id: str
    login: str
    avatar_url: str | None = None


class GitHubLogin:
    """Thin async wrapper over the registered authlib GitHub client."""

    def __init__(self, oauth: OAuth, redirect_uri: str) -> None:
        self._client = oauth.create_client("github")
        self._redirect_uri = redirect_uri

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def authorization_url(self, state: str) -> str:
        rv = await self._client.create_authorization_url(self._redirect_uri, state=state)
        return rv["url"]

    async def exchange_code(self, code: str) -> dict:
        """Trade an authorization code for a GitHub access token.

        Raises authlib OAuthError or httpx.HTTPError on provider failure.
        """
        return await self._client.fetch_access_token(code=code, redirect_uri=self._redirect_uri)

    async def fetch_profile(self, token: dict) -> GitHubProfile:
        """GET /user and normalize it.

        Raises ValueError if the response lacks the numeric ID -- the only
        field we rely on as a stable identity.
        """
        resp = await self._client.get("user", token=token)
        resp.raise_for_status()
        profile = resp.json()
        if profile.get("id") is None:
            raise ValueError("GitHub OAuth: profile response has no id")
        return GitHubProfile(
            github_id=str(profile["id"]),
            login=profile.get("login") or "github_user",
            avatar_url=profile.get("avatar_url"),
        )
