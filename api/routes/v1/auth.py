"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register         -- create a local account; returns a bearer token
  POST /api/v1/auth/login            -- email/password login; returns a bearer token
  GET  /api/v1/auth/github/login     -- 302 to GitHub with a fresh CSRF state
  GET  /api/v1/auth/github/callback  -- verify state, exchange code, returns a bearer token
  GET  /api/v1/auth/me               -- current user info (requires auth)

Security:
  [R1] Rate limits (api/limiter.py): register 3/hour, login and GitHub 10/minute,
       /me 60/minute per client IP.
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  [C2] The GitHub callback consumes the state BEFORE talking to GitHub. A
       callback with a missing, unknown, reused or expired state is a 401 and
       never reaches the token endpoint.
  [M5] Cache-Control: no-store on every response that carries a token.
  Every authentication failure surfaces as the same 401 body (api/main.py);
  causes are logged, not returned.

register and login are plain `def` handlers on purpose: Argon2 is slow and
memory-hard, and FastAPI runs sync handlers in its threadpool instead of
blocking the event loop.

No `from __future__ import annotations` here: slowapi wraps the handlers and
FastAPI must be able to resolve the real annotation objects through the
wrapper.
"""

import logging

import httpx
from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import api_limit, limiter, login_limit, register_limit
from api.models import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from auth.dependencies import get_current_user
from auth.errors import AuthenticationError
from auth.models import User
from auth.oauth import GitHubLogin
from auth.oauth_state import OAuthStateGuard
from auth.passwords import CredentialService, authenticate_user
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("leetshare.api.auth")

# Auth policy:
# - POST /api/v1/auth/register:        public
# - POST /api/v1/auth/login:           public
# - GET  /api/v1/auth/github/login:    public
# - GET  /api/v1/auth/github/callback: public, guarded by the OAuth state
# - GET  /api/v1/auth/me:              requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Local accounts
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse)
@limiter.limit(register_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a local account and log it in.

    Duplicate usernames and emails get the same generic 400 so the endpoint
    cannot be used to probe which accounts exist.
    """
    user_store: UserStore = request.app.state.user_store
    credentials: CredentialService = request.app.state.credentials
    logger.info("Registration attempt username=%s", body.username)

    new_user = User(
        username=body.username,
        email=body.email,
        password_hash=credentials.hash(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        logger.warning("Registration failed: duplicate entry username=%s", body.username)
        raise HTTPException(
            status_code=400,
            detail={
                "code": "registration_failed",
                "message": "Registration failed. Please try a different username or email.",
            },
        ) from exc

    logger.info("Registration successful user_id=%s", user_id)
    return _token_response(request.app.state.tokens, user_id, body.username)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(login_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Uses authenticate_user() which includes timing equalization [C1]. Do NOT
    inline get_by_email() + verify() -- that re-introduces the timing attack.
    """
    user = authenticate_user(
        request.app.state.user_store,
        request.app.state.credentials,
        body.email,
        body.password,
    )
    logger.info("Login successful user_id=%s", user.id)
    return _token_response(request.app.state.tokens, user.id, user.username)


# ---------------------------------------------------------------------------
# GitHub OAuth
# ---------------------------------------------------------------------------


@router.get("/auth/github/login")
@limiter.limit(login_limit)
async def github_login(request: Request) -> RedirectResponse:
    """Redirect the browser to GitHub's authorization page with a one-time state."""
    github = _github(request)
    oauth_states: OAuthStateGuard = request.app.state.oauth_states
    state = oauth_states.generate_state()
    url = await github.authorization_url(state)
    return RedirectResponse(url, status_code=302)


@router.get("/auth/github/callback", response_model=AuthResponse)
@limiter.limit(login_limit)
async def github_callback(request: Request, code: str = "", state: str = "") -> JSONResponse:
    """Handle GitHub's redirect back and issue a bearer token.

    Flow:
      1. Consume the state [C2] -- AuthenticationError (401) if not live.
      2. Exchange the authorization code for a GitHub token.
      3. Fetch the profile; its numeric ID is the stable identity.
      4. Find-or-create the user by github_id.
      5. Issue our own token.
    """
    github = _github(request)
    oauth_states: OAuthStateGuard = request.app.state.oauth_states
    oauth_states.verify_and_consume(state)

    if not code:
        raise AuthenticationError("github callback without code")

    try:
        token = await github.exchange_code(code)
        profile = await github.fetch_profile(token)
    except (OAuthError, httpx.HTTPError, KeyError, ValueError) as exc:
        logger.warning("GitHub OAuth failed: %s", type(exc).__name__)
        raise AuthenticationError("github login failed") from exc

    user_store: UserStore = request.app.state.user_store
    user = user_store.upsert_github_user(profile.github_id, profile.login, profile.avatar_url)
    logger.info("GitHub login successful user_id=%s", user.id)
    return _token_response(request.app.state.tokens, user.id, user.username)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
@limiter.limit(api_limit)
async def me(request: Request, current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(
        user_id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        avatar_url=current_user.avatar_url,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _github(request: Request) -> GitHubLogin:
    github: GitHubLogin = request.app.state.github
    if not github.enabled:
        raise HTTPException(
            status_code=503,
            detail={"code": "provider_disabled", "message": "GitHub login is not configured."},
        )
    return github


def _token_response(tokens: TokenService, user_id: str, username: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=200,
        content=AuthResponse(
            token=tokens.issue(user_id),
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=tokens.validity_seconds,
            username=username,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp
