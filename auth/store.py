"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Registration must not reveal whether an email or username is taken, so
  create_user() lets IntegrityError propagate and the route turns it into a
  generic message.

IDs are UUID4 strings generated here, so they are opaque to clients and not
enumerable.

DB URL: Settings.database_url (SQLite file by default; any SQLAlchemy URL).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User

logger = logging.getLogger("leetshare.auth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("username", String(64), nullable=False, unique=True),
    Column("email", String(255), unique=True),  # NULL for GitHub-only users
    Column("password_hash", Text),  # NULL for GitHub-only users
    Column("github_id", String(64), unique=True),
    Column("avatar_url", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked by a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(settings.database_url)
        user_id = store.create_user(User(username="ada", email="ada@example.org", password_hash=h))
        user = store.get_by_email("ada@example.org")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the username, email, or
        github_id is already taken.
        """
        user_id = user.id or str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    username=user.username,
                    email=user.email,
                    password_hash=user.password_hash,
                    github_id=user.github_id,
                    avatar_url=user.avatar_url,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return user_id

    def update_password_hash(self, user_id: str, password_hash: str) -> None:
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(password_hash=password_hash, updated_at=_now_iso())
            )
            conn.commit()

    def upsert_github_user(self, github_id: str, username: str, avatar_url: str | None) -> User:
        """Find the user linked to github_id, or create one. Returns the fresh record.

        Returning users get their avatar refreshed. New users take their GitHub
        login as username; if a local account already owns that name, the
        GitHub ID is appended to keep usernames unique.
        """
        existing = self.get_by_github_id(github_id)
        if existing is not None:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.update()
                    .where(_users.c.id == existing.id)
                    .values(avatar_url=avatar_url, updated_at=_now_iso())
                )
                conn.commit()
            return self.get_by_id(existing.id)

        for candidate in (username, f"{username}-{github_id}"):
            try:
                user_id = self.create_user(User(username=candidate, github_id=github_id, avatar_url=avatar_url))
            except IntegrityError:
                # A concurrent callback for the same GitHub account won the race.
                raced = self.get_by_github_id(github_id)
                if raced is not None:
                    return raced
                logger.info("Username %r taken; retrying GitHub signup with suffix", candidate)
                continue
            logger.info("Created user for GitHub account github_id=%s", github_id)
            return self.get_by_id(user_id)

        raise IntegrityError("upsert_github_user", {"github_id": github_id}, Exception("username collision"))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_github_id(self, github_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.github_id == github_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        github_id=row.github_id,
        avatar_url=row.avatar_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
