"""
auth/passwords.py -- Password hashing, verification, and login.

Security design decisions:
  Hashing: argon2-cffi PasswordHasher (Argon2id, library-default cost
       parameters). Argon2id is memory-hard, so GPU/ASIC brute force of a
       leaked table is expensive. Every hash gets a fresh random salt; the
       salt and parameters live inside the PHC string
       ($argon2id$v=19$m=...,t=...,p=...$salt$digest), so verify() keeps
       working for records hashed under older parameters.

  Legacy records: hashes written by bcrypt ($2a$/$2b$/$2y$) still verify
       through the bcrypt package. needs_rehash() flags them (and Argon2
       records with stale parameters) so authenticate_user() can upgrade
       them in place on the next successful login.

  Constant time: comparisons are delegated to argon2/bcrypt. A mismatch is
       a plain False, never an exception; only a structurally corrupt record
       raises InternalError.

  Timing equalization [C1]: authenticate_user() always runs one full verify,
       against a dummy hash when the account is unknown or has no password,
       so response time does not reveal whether an email is registered.

Hashing is CPU-bound and deliberately slow. Route handlers that call into
this module are plain `def` functions so FastAPI runs them in its threadpool
instead of on the event loop.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt
from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from auth.errors import AuthenticationError, InternalError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("leetshare.auth.passwords")

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only ever looked at the first 72 bytes; newer bcrypt releases raise
# instead of truncating, so legacy verification truncates explicitly.
_BCRYPT_MAX_BYTES = 72


class CredentialService:
    """Convert passwords to storable hashes and check candidates against them.

    Thread-safe: holds no mutable state after construction.
    """

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._hasher = hasher or PasswordHasher(type=Type.ID)
        # Computed once so the first unknown-account login is not measurably
        # slower than later ones.
        self._dummy_hash = self.hash("leetshare_timing_dummy")

    def hash(self, plaintext: str) -> str:
        """Return an Argon2id PHC string for plaintext."""
        try:
            return self._hasher.hash(plaintext)
        except HashingError as exc:
            logger.error("Argon2 hashing failed: %s", exc)
            raise InternalError("password hashing failed") from exc

    def verify(self, plaintext: str, hash_string: str) -> bool:
        """Return True if plaintext matches the stored hash, False otherwise.

        Raises InternalError only when hash_string cannot be parsed. PHC
        strings are pure ASCII; any other character marks a corrupt record.
        """
        if hash_string.startswith(_BCRYPT_PREFIXES):
            try:
                return bcrypt.checkpw(
                    plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES],
                    hash_string.encode("utf-8"),
                )
            except ValueError as exc:
                logger.error("Corrupt bcrypt password record: %s", exc)
                raise InternalError("corrupt password record") from exc

        if not hash_string.isascii():
            logger.error("Corrupt argon2 password record: non-ASCII characters")
            raise InternalError("corrupt password record")
        try:
            return self._hasher.verify(hash_string, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            logger.error("Corrupt argon2 password record: %s", exc)
            raise InternalError("corrupt password record") from exc

    def needs_rehash(self, hash_string: str) -> bool:
        """True if the record was produced by another algorithm or parameter set."""
        if hash_string.startswith(_BCRYPT_PREFIXES):
            return True
        if not hash_string.isascii():
            raise InternalError("corrupt password record")
        try:
            return self._hasher.check_needs_rehash(hash_string)
        except InvalidHashError as exc:
            raise InternalError("corrupt password record") from exc

    def dummy_verify(self, plaintext: str) -> None:
        """Burn one verification's worth of time without checking anything."""
        self.verify(plaintext, self._dummy_hash)


def authenticate_user(store: UserStore, credentials: CredentialService, email: str, password: str) -> User:
    """Authenticate an email/password login with timing equalization [C1].

    Always runs exactly one password verification whether or not the account
    exists:
      - Unknown email or GitHub-only account: verify against the dummy hash.
      - Known account: verify against the stored hash.

    Every failure raises AuthenticationError("invalid credentials"); the
    distinct cause is logged for operators only. On success a stale hash is
    transparently upgraded to the current Argon2 parameters.
    """
    user = store.get_by_email(email)
    if user is None or user.password_hash is None:
        credentials.dummy_verify(password)
        if user is None:
            logger.warning("Login failed: no account for submitted email")
        else:
            logger.warning("Login failed: GitHub-only account user_id=%s", user.id)
        raise AuthenticationError("invalid credentials")

    if not credentials.verify(password, user.password_hash):
        logger.warning("Login failed: incorrect password user_id=%s", user.id)
        raise AuthenticationError("invalid credentials")

    if credentials.needs_rehash(user.password_hash):
        user.password_hash = credentials.hash(password)
        store.update_password_hash(user.id, user.password_hash)
        logger.info("Upgraded password hash for user_id=%s", user.id)

    return user
