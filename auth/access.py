"""
auth/access.py -- Capability checks for tasks and user records.

Every route asks one of these functions before it touches a resource, instead
of scattering `if role == "admin"` checks through handlers. Each function is
pure: it takes an already-verified Identity and already-fetched resource state,
does no I/O, and maps every role/ownership combination to a Decision.

    decision = authorize_task_mutation(identity, task)
    enforce(decision, NotFound("Task not found."))

Task denials are reported by callers as NotFound, not Forbidden, so a user
cannot discover the existence of other users' tasks.

Layer rule: no imports from api/. tasks/ is imported for typing only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from auth.models import ROLE_ADMIN, Identity
from core.errors import TaskboardError

if TYPE_CHECKING:
    from tasks.models import Task


class _HasId(Protocol):
    id: int


@dataclass(frozen=True)
class Decision:
    """Tagged allow/deny result. Truthy when allowed."""

    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def _allow(reason: str) -> Decision:
    return Decision(allowed=True, reason=reason)


def _deny(reason: str) -> Decision:
    return Decision(allowed=False, reason=reason)


def _is_admin(identity: Identity) -> bool:
    return identity.role == ROLE_ADMIN


def authorize_task_mutation(identity: Identity, task: Task) -> Decision:
    """Allow admins on any task and owners on their own."""
    if _is_admin(identity):
        return _allow("admin")
    if identity.id == task.owner_id:
        return _allow("owner")
    return _deny("not_owner")


def authorize_task_read(identity: Identity, task: Task) -> Decision:
    """Same rule as mutation. The admin list-all view does not go through here."""
    return authorize_task_mutation(identity, task)


def authorize_user_deletion(identity: Identity, target_user: _HasId) -> Decision:
    """Admins may delete any account except their own (avoids admin lockout)."""
    if not _is_admin(identity):
        return _deny("not_admin")
    if identity.id == target_user.id:
        return _deny("self_deletion")
    return _allow("admin")


def authorize_admin_action(identity: Identity) -> Decision:
    if _is_admin(identity):
        return _allow("admin")
    return _deny("not_admin")


def enforce(decision: Decision, error: TaskboardError) -> None:
    """Raise `error` if the decision is a denial."""
    if not decision.allowed:
        raise error
