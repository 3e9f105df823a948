"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; these only own the shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Claims:
    """Payload of a verified session token.

    subject is the principal's opaque ID (a User.id). Timestamps are whole
    UNIX seconds, mirroring the JWT iat/exp claims they are read from.
    """

    subject: str
    issued_at: int
    expires_at: int


@dataclass
class User:
    """A registered principal.

    password_hash is None for GitHub-only users (they have no local password).
    github_id is None until the user logs in via GitHub. email is None for
    GitHub users, since GitHub does not always expose one.
    """

    username: str
    id: str | None = None
    email: str | None = None
    password_hash: str | None = None  # Argon2id PHC string (or legacy bcrypt)
    github_id: str | None = None  # GitHub's stable numeric user ID, as text
    avatar_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
