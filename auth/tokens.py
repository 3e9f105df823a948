"""
auth/tokens.py -- Session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry exactly three claims -- sub (the
       user ID), iat and exp -- and are valid for a fixed seven days.
       verify() raises AuthenticationError("invalid token") on ANY failure
       (bad signature, malformed token, missing claim, expiry) so callers
       cannot be used as an oracle for which check failed. The real cause is
       logged for operators.

  Expiry: checked against the injected Clock, not jose's internal wall-clock
       check, so tests can simulate a week passing.

  Secret: validated once in the constructor via
       core.config.validate_signing_secret(). A bad secret raises
       ConfigurationError before the service can be used [S1]. The secret is
       held privately and never logged or echoed.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is
the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from jose import JWTError, jwt

from auth.clock import Clock, default_clock
from auth.errors import AuthenticationError
from auth.models import Claims
from core.config import validate_signing_secret

logger = logging.getLogger("leetshare.auth.tokens")

_ALGORITHM = "HS256"

TOKEN_VALIDITY = timedelta(days=7)


class TokenService:
    """Mint and verify signed session tokens bound to a principal ID.

    Usage:
        tokens = TokenService(settings.jwt_secret)
        token = tokens.issue(user.id)
        claims = tokens.verify(token)   # raises AuthenticationError
    """

    def __init__(
        self,
        secret: str,
        *,
        clock: Clock = default_clock,
        validity: timedelta = TOKEN_VALIDITY,
    ) -> None:
        self._secret = validate_signing_secret(secret)
        self._clock = clock
        self._validity_seconds = int(validity.total_seconds())

    def __repr__(self) -> str:
        return f"TokenService(validity={self._validity_seconds}s)"

    @property
    def validity_seconds(self) -> int:
        return self._validity_seconds

    def issue(self, subject: str) -> str:
        """Encode a signed JWT for subject, valid from now for the fixed window."""
        issued_at = int(self._clock())
        payload = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self._validity_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Claims:
        """Decode and verify a JWT. Returns Claims or raises AuthenticationError.

        jose checks the signature and structure; exp is checked here against
        the injected clock (jose's own exp check is disabled for that reason).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.info("Token rejected: %s", exc)
            raise AuthenticationError("invalid token") from None

        subject = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            logger.info("Token rejected: missing subject")
            raise AuthenticationError("invalid token")
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            logger.info("Token rejected: missing or non-integer iat/exp")
            raise AuthenticationError("invalid token")
        if expires_at - issued_at != self._validity_seconds:
            logger.info("Token rejected: validity window %ds", expires_at - issued_at)
            raise AuthenticationError("invalid token")
        if not self._clock() < expires_at:
            logger.info("Token rejected: expired at %d", expires_at)
            raise AuthenticationError("invalid token")

        return Claims(subject=subject, issued_at=issued_at, expires_at=expires_at)
