"""
auth/tokens.py -- JWT issuance and verification.

JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry the
user id (sub), email, role, issue time and an absolute expiry. Verification
returns None on any failure -- the auth dependency turns that into a 403.

Tokens are stateless. There is no refresh, rotation or server-side
revocation: a token stays valid until exp, and a client must log in again
afterwards.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import ROLES, Identity
from core.config import get_settings

_settings = get_settings()

_ALGORITHM = "HS256"


def create_access_token(identity: Identity, expire_seconds: int = 0, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT for the given identity.

    Args:
        identity:       The principal the token speaks for.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
        issued_at:      Issue time, defaults to now. Expiry is computed from
                        it, so a back-dated issue time yields a token that is
                        already expired.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(identity.id),
        "email": identity.email,
        "role": identity.role,
        "iat": issued,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Identity | None:
    """Verify a JWT and return the Identity it carries, or None.

    None covers every failure: bad signature, wrong algorithm, expired,
    missing or ill-typed claims, unknown role. A partially valid token never
    yields a partial identity.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    if not isinstance(sub, str) or not sub.isdigit():
        return None
    if not isinstance(email, str) or role not in ROLES:
        return None
    if "exp" not in payload:
        return None
    return Identity(id=int(sub), email=email, role=role)
