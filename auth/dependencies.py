"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Identity comes from the bearer token alone. The token is self-contained and
verified per request; the user table is not consulted. A token therefore
keeps working after its user is deleted, until it expires. Routes that need
the user record (GET /profile) look it up and answer 404 themselves.

  get_current_identity() -- 401 when no bearer token, 403 when the token fails
                            verification.
  require_admin()        -- get_current_identity() plus authorize_admin_action;
                            403 for non-admins.

Failures are raised as core.errors domain exceptions; api/main.py maps them to
the standard error envelope.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.access import authorize_admin_action, enforce
from auth.models import Identity
from auth.tokens import decode_access_token
from core.errors import Forbidden, InvalidToken, Unauthenticated

_BEARER_PREFIX = "bearer "


def _bearer_token(request: Request) -> str | None:
    """Extract the token from `Authorization: Bearer <token>`, or None."""
    header = request.headers.get("Authorization", "")
    if header[: len(_BEARER_PREFIX)].lower() != _BEARER_PREFIX:
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise Unauthenticated()
    identity = decode_access_token(token)
    if identity is None:
        raise InvalidToken()
    return identity


def require_admin(request: Request) -> Identity:
    """Require an admin token. 401/403 as get_current_identity(), then 403 if not admin."""
    identity = get_current_identity(request)
    enforce(authorize_admin_action(identity), Forbidden("Admin access required."))
    return identity
