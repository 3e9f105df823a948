"""
auth/oauth_state.py -- One-time CSRF state tokens for the GitHub login flow.

The state parameter protects the OAuth callback against forged requests: the
login redirect embeds a random token, GitHub echoes it back on the callback,
and the callback is only honoured if that token is one we issued, have not
consumed yet, and issued less than ten minutes ago.

Per-token lifecycle:

    absent -> issued -> consumed   (verify_and_consume succeeded)
    absent -> issued -> expired    (TTL passed; removed by cleanup or verify)

Neither end state can go back to issued.

Concurrency:
  The table is shared by every request the process handles. Every
  read-modify-write (insert, pop-then-check, sweep) runs inside one
  `with self._lock:` block, so two simultaneous callbacks with the same
  state can never both succeed, and the lock is released on every exit path.

Scope: single-process, in-memory. Running several workers behind a load
balancer needs a shared store instead; that is out of scope.

Logging: state values are logged truncated to six characters, never whole.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import secrets
import string
import threading

from auth.clock import Clock, default_clock
from auth.errors import AuthenticationError

logger = logging.getLogger("leetshare.auth.oauth_state")

STATE_LENGTH = 32
STATE_TTL_SECONDS = 600

_ALPHABET = string.ascii_letters + string.digits  # 62 symbols


class OAuthStateGuard:
    """Issue, store, and consume single-use, time-bounded OAuth state tokens.

    The table and lock may be passed in (e.g. to share one table between two
    guards in a test); by default the guard owns fresh ones.
    """

    def __init__(
        self,
        *,
        ttl: int = STATE_TTL_SECONDS,
        clock: Clock = default_clock,
        states: dict[str, float] | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._states: dict[str, float] = states if states is not None else {}
        self._lock = lock or threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def generate_state(self) -> str:
        """Create and record a new state token, then sweep stale entries."""
        state = "".join(secrets.choice(_ALPHABET) for _ in range(STATE_LENGTH))
        with self._lock:
            self._states[state] = self._clock()
        logger.debug("Issued OAuth state %s****", state[:6])
        self.cleanup_expired()
        return state

    def verify_and_consume(self, state: str) -> None:
        """Atomically remove state and check it was live.

        Raises:
            AuthenticationError("invalid state"): never issued, or already
                consumed / swept.
            AuthenticationError("state expired"): issued more than ttl seconds
                ago. The entry is removed regardless, so it cannot be retried.
        """
        with self._lock:
            issued_at = self._states.pop(state, None)
            now = self._clock()
        if issued_at is None:
            logger.warning("OAuth state rejected: unknown or already used (%s****)", state[:6])
            raise AuthenticationError("invalid state")
        if now - issued_at > self._ttl:
            logger.warning("OAuth state rejected: expired after %.0fs (%s****)", now - issued_at, state[:6])
            raise AuthenticationError("state expired")
        logger.debug("Consumed OAuth state %s****", state[:6])

    def cleanup_expired(self) -> int:
        """Drop every entry older than the TTL. Returns how many were removed.

        Best-effort housekeeping only: verify_and_consume() checks the TTL
        itself and never relies on this having run.
        """
        with self._lock:
            now = self._clock()
            stale = [s for s, issued_at in self._states.items() if now - issued_at > self._ttl]
            for s in stale:
                del self._states[s]
        if stale:
            logger.debug("Swept %d expired OAuth state(s)", len(stale))
        return len(stale)
