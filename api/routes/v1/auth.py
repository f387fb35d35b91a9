"""
api/routes/v1/auth.py -- Registration, login and profile REST endpoints.

Routes:
  POST /api/v1/register   -- create account; returns token + user (201)
  POST /api/v1/login      -- password login; returns token + user
  GET  /api/v1/profile    -- current user's record (requires auth)
  PUT  /api/v1/profile    -- change display name (requires auth)

Security:
  POST /login is rate-limited per client address (Settings.login_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline.
  Wrong email and wrong password produce the same "invalid_credentials" error.
  Cache-Control: no-store on every response that carries a token.
  role=admin on public registration is refused when
  Settings.allow_admin_registration is off.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MessageResponse, ProfileUpdate, RegisterRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.models import ROLE_ADMIN, Identity, PublicUser
from auth.passwords import authenticate_user
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import get_settings
from core.errors import Forbidden, InvalidCredentials, NotFound

logger = logging.getLogger("taskboard.auth")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/register: public
# - POST /api/v1/login:    public, rate-limited
# - GET  /api/v1/profile:  requires auth (get_current_identity)
# - PUT  /api/v1/profile:  requires auth (get_current_identity)
router = APIRouter()


def _token_response(status_code: int, message: str, user: PublicUser) -> JSONResponse:
    identity = Identity(id=user.id, email=user.email, role=user.role)
    token = create_access_token(identity)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
            user=UserResponse.from_user(user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _own_record(user_store: UserStore, identity: Identity) -> PublicUser:
    """The caller's stored record, or NotFound.

    The stored email must still match the token's email claim, so a token
    never resolves to a different account than the one it was issued for.
    """
    user = user_store.get_by_id(identity.id)
    if user is None or user.email != identity.email:
        raise NotFound("User not found.")
    return user


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in.

    DuplicateEmail (400) if the email is taken. The store's UNIQUE constraint
    decides, not a prior lookup, so concurrent registrations cannot both win.
    """
    if body.role.value == ROLE_ADMIN and not _settings.allow_admin_registration:
        raise Forbidden("Admin accounts cannot be self-registered.")
    user_store: UserStore = request.app.state.user_store
    user = user_store.create_user(body.name, body.email, body.password, role=body.role.value)
    logger.info("Registered user id=%d role=%s", user.id, user.role)
    return _token_response(201, "User registered successfully", user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Uses authenticate_user() which includes timing equalization. Do NOT
    inline get_by_email() + verify_password() -- that re-introduces the
    timing attack.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.warning("Failed login from %s", request.client.host if request.client else "unknown")
        raise InvalidCredentials()
    public = PublicUser(id=user.id, name=user.name, email=user.email, role=user.role, created_at=user.created_at)
    return _token_response(200, "Login successful", public)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=UserResponse)
def get_profile(request: Request, identity: Identity = Depends(get_current_identity)) -> UserResponse:
    """Return the caller's user record. 404 if the account was deleted after the token was issued."""
    user_store: UserStore = request.app.state.user_store
    return UserResponse.from_user(_own_record(user_store, identity))


@router.put("/profile", response_model=MessageResponse)
def update_profile(
    request: Request,
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Change the caller's display name. Role and email are not editable here."""
    user_store: UserStore = request.app.state.user_store
    _own_record(user_store, identity)
    if not user_store.update_name(identity.id, body.name):
        raise NotFound("User not found.")
    return MessageResponse(message="Profile updated successfully")
