"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository;
_row_to_user / _row_to_public_user are the mappers. Route and dependency code
never touches SQL directly.

The store receives a Database handle (core/database.py) instead of building
its own engine, so the task store can share the same connection pool and the
admin task view can join across both tables.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Passwords are hashed here, on the way in. The plaintext never reaches SQL.
  Only get_by_email() returns password_hash; every other read returns
  PublicUser.

Emails are stored lower-cased, and lookups lower-case their argument, so
"Alice@X.com" and "alice@x.com" are the same account.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_ADMIN, ROLE_USER, PublicUser, User
from auth.passwords import hash_password
from core.database import Database, users
from core.errors import DuplicateEmail

logger = logging.getLogger("taskboard.auth")

_PUBLIC_COLUMNS = (users.c.id, users.c.name, users.c.email, users.c.role, users.c.created_at)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(db)
        user = store.create_user("Alice", "a@x.com", "secret1")
        store.get_by_email("a@x.com")
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, password: str, role: str = ROLE_USER) -> PublicUser:
        """Hash the password, insert the user and return its public view.

        Raises DuplicateEmail if the email is already registered. The UNIQUE
        constraint is the authority, so two concurrent registrations for the
        same email cannot both succeed.
        """
        values = {
            "name": name,
            "email": _normalize_email(email),
            "password_hash": hash_password(password),
            "role": role,
            "created_at": _now_iso(),
        }
        try:
            with self.db.begin() as conn:
                result = conn.execute(users.insert().values(**values))
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        return PublicUser(
            id=user_id,
            name=values["name"],
            email=values["email"],
            role=values["role"],
            created_at=values["created_at"],
        )

    def update_name(self, user_id: int, name: str) -> bool:
        """Change a user's display name. Returns False if user_id does not exist.

        Name is the only field the profile path may change; role and email are
        deliberately not accepted here.
        """
        with self.db.begin() as conn:
            result = conn.execute(users.update().where(users.c.id == user_id).values(name=name))
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Delete a user. Their tasks go with them (ON DELETE CASCADE).

        Authorization (admin only, never self) is the caller's job -- see
        auth/access.authorize_user_deletion.
        """
        with self.db.begin() as conn:
            result = conn.execute(users.delete().where(users.c.id == user_id))
        return result.rowcount > 0

    def ensure_admin(self, name: str, email: str, password: str) -> bool:
        """Create an admin account unless the email is already registered.

        Idempotent: safe to call on every startup. Returns True only when a
        record was created. An existing account with that email is left as is,
        whatever its role.
        """
        if self.has_email(email):
            return False
        try:
            self.create_user(name, email, password, role=ROLE_ADMIN)
        except DuplicateEmail:
            # Lost a race with another process bootstrapping the same account.
            return False
        logger.info("Bootstrap admin account created for %s", _normalize_email(email))
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> User | None:
        """Full record including password_hash. For the login path only."""
        with self.db.connect() as conn:
            row = conn.execute(users.select().where(users.c.email == _normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> PublicUser | None:
        with self.db.connect() as conn:
            row = conn.execute(select(*_PUBLIC_COLUMNS).where(users.c.id == user_id)).fetchone()
        return _row_to_public_user(row) if row is not None else None

    def has_email(self, email: str) -> bool:
        with self.db.connect() as conn:
            row = conn.execute(select(users.c.id).where(users.c.email == _normalize_email(email))).fetchone()
        return row is not None

    def list_users(self) -> list[PublicUser]:
        """Return all users, newest first. Admin-only operation."""
        with self.db.connect() as conn:
            rows = conn.execute(
                select(*_PUBLIC_COLUMNS).order_by(users.c.created_at.desc(), users.c.id.desc())
            ).fetchall()
        return [_row_to_public_user(r) for r in rows]


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        created_at=row.created_at,
    )


def _row_to_public_user(row) -> PublicUser:
    return PublicUser(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        created_at=row.created_at,
    )
