"""
auth/errors.py -- Exception taxonomy for the authentication core.

Two runtime categories, both mapped to HTTP responses in api/main.py:

  AuthenticationError -> 401. Bad/expired/malformed token, wrong password,
      invalid/expired/missing OAuth state. Every instance produces the SAME
      response body so a client cannot tell which check failed. The reason
      string is for operator logs only.

  InternalError -> 500. Cryptographic library failure, corrupt stored hash.

Startup misconfiguration is core.config.ConfigurationError, which is never
caught: the process refuses to start.

Layer rule: no imports from api/, core/, or cache/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors raised by the auth services."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class AuthenticationError(AuthError):
    """The caller failed to prove who they are."""


class InternalError(AuthError):
    """Something broke on our side; never the caller's fault."""
