"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only define shape.

Three views of a person exist:
  User        -- full stored record including password_hash. Only the login
                 path (authenticate_user) ever sees this.
  PublicUser  -- what every other read returns. No password material.
  Identity    -- what a verified token proves: id, email, role. Never
                 persisted, never looked up per request.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass
class User:
    name: str
    email: str
    password_hash: str
    role: str = ROLE_USER
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class PublicUser:
    """A user record safe to return from the API."""

    id: int
    name: str
    email: str
    role: str
    created_at: str


@dataclass(frozen=True)
class Identity:
    """The authenticated principal derived from a verified token.

    Frozen: an identity is a statement about a token, not mutable state.
    """

    id: int
    email: str
    role: str
