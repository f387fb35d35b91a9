"""
core/errors.py -- Domain error taxonomy for Taskboard.

Stores, auth helpers and route handlers raise these instead of HTTPException
so the same failure means the same thing everywhere. api/main.py registers a
single exception handler that turns any TaskboardError into the standard
error envelope:

    {"error": {"code": "...", "message": "...", "detail": null}}

Each subclass fixes its HTTP status and machine-readable code. The message
may be overridden per raise site; it must never carry internal detail
(SQL text, stack traces, password material).

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class TaskboardError(Exception):
    """Base class for all errors that cross the request boundary."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class ValidationFailed(TaskboardError):
    status_code = 400
    code = "validation_failed"
    message = "Request validation failed."


class DuplicateEmail(TaskboardError):
    status_code = 400
    code = "duplicate_email"
    message = "Email already exists."


class InvalidCredentials(TaskboardError):
    """Wrong email or wrong password. The two cases are never distinguished."""

    status_code = 400
    code = "invalid_credentials"
    message = "Invalid credentials."


class Unauthenticated(TaskboardError):
    status_code = 401
    code = "unauthenticated"
    message = "Access token required."


class InvalidToken(Unauthenticated):
    """A token was presented but its signature, structure or expiry is bad."""

    status_code = 403
    code = "invalid_token"
    message = "Invalid or expired token."


class Forbidden(TaskboardError):
    status_code = 403
    code = "forbidden"
    message = "Insufficient permissions."


class NotFound(TaskboardError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class PayloadTooLarge(TaskboardError):
    status_code = 413
    code = "payload_too_large"
    message = "Request body too large."


class InternalError(TaskboardError):
    pass
