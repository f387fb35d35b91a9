"""
API request and response models for Taskboard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import PublicUser
from tasks.models import Task, TaskWithOwner

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", no whitespace, a dot in the domain. Deliverability
# is not our problem; rejecting obvious garbage is.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Passwords are never stripped: leading and trailing spaces are part of the secret.
_Email = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, max_length=255, pattern=EMAIL_PATTERN)]
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    admin = "admin"


class TaskStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error body. code is stable; message is for humans."""

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response for GET /health and GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/register.

    bcrypt reads only the first 72 bytes of a password. Longer passwords are
    accepted, but two that share their first 72 bytes verify against each
    other.
    """

    name: _Name
    email: _Email
    password: str = Field(min_length=6, max_length=255)
    role: RoleEnum = RoleEnum.user


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/login."""

    email: _Email
    password: str = Field(min_length=1, max_length=255)


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/v1/profile. Name is the only mutable field.

    Other keys (role, email) are dropped, not rejected, so they can never
    reach the store.
    """

    model_config = ConfigDict(extra="ignore")

    name: _Name


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: str

    @classmethod
    def from_user(cls, user: PublicUser) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role, created_at=user.created_at)


class AuthResponse(BaseModel):
    """Returned by register and login. token is a bearer JWT."""

    message: str
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /api/v1/tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: TaskStatusEnum = TaskStatusEnum.pending


class TaskUpdate(BaseModel):
    """Request body for PUT /api/v1/tasks/{id}.

    title is required. description and status change only when present in the
    body; an explicit null description clears it.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: Optional[TaskStatusEnum] = None


class TaskResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: Optional[str]
    status: str
    created_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            status=task.status,
            created_at=task.created_at,
        )


class AdminTaskResponse(TaskResponse):
    """One row of GET /api/v1/admin/tasks: the task plus its owner's contact."""

    user_name: str
    user_email: str

    @classmethod
    def from_row(cls, row: TaskWithOwner) -> "AdminTaskResponse":
        base = TaskResponse.from_task(row.task).model_dump()
        return cls(**base, user_name=row.owner_name, user_email=row.owner_email)
