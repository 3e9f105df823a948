"""
auth/dependencies.py -- Bearer-token extraction and FastAPI Depends() helpers.

parse_bearer_header() is transport-agnostic: it takes the raw Authorization
header value and a TokenService, and returns Claims or raises
AuthenticationError. The FastAPI helpers below are thin adapters that pull
the header and services off the request.

  get_current_claims() -- verified Claims, or AuthenticationError (-> 401).
  get_current_user()   -- the User those claims refer to, or 401 if the
                          account no longer exists.

Layer rule: no imports from api/ or core/. auth/dependencies.py may import
from fastapi (for Request) because it is part of the DI wiring.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import AuthenticationError
from auth.models import Claims, User
from auth.tokens import TokenService

_SCHEME = "Bearer "


def parse_bearer_header(header_value: str | None, tokens: TokenService) -> Claims:
    """Turn an `Authorization: Bearer <token>` value into verified Claims."""
    if not header_value:
        raise AuthenticationError("missing authorization header")
    if not header_value.startswith(_SCHEME):
        raise AuthenticationError("invalid authorization header format")
    token = header_value[len(_SCHEME) :].strip()
    if not token:
        raise AuthenticationError("empty bearer token")
    return tokens.verify(token)


def get_current_claims(request: Request) -> Claims:
    """Require a valid bearer token. Use as a FastAPI dependency:

    @router.get("/protected")
    async def route(claims: Claims = Depends(get_current_claims)): ...
    """
    return parse_bearer_header(request.headers.get("Authorization"), request.app.state.tokens)


def get_current_user(request: Request) -> User:
    """Require a valid bearer token for an account that still exists."""
    claims = get_current_claims(request)
    user = request.app.state.user_store.get_by_id(claims.subject)
    if user is None:
        raise AuthenticationError("token subject no longer exists")
    return user
