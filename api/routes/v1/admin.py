"""
api/routes/v1/admin.py -- Administrative user and task management.

Routes:
  GET    /admin/users            -- every account, newest first
  DELETE /admin/users/{user_id}  -- delete an account and its tasks
  GET    /admin/tasks            -- every task with owner name and email
  DELETE /admin/tasks/{task_id}  -- delete any task

Every route requires an admin token (router-level require_admin dependency).
The admin task listing bypasses per-task ownership checks entirely; that is
the point of the view.

[Self-deletion] An admin cannot delete their own account. Without this guard
the last admin could lock everyone out of these routes.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import AdminTaskResponse, MessageResponse, UserResponse
from auth.access import authorize_user_deletion, enforce
from auth.dependencies import require_admin
from auth.models import Identity
from auth.store import UserStore
from core.errors import Forbidden, NotFound
from tasks.store import TaskStore

logger = logging.getLogger("taskboard.api")

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    user_id: int,
    identity: Identity = Depends(require_admin),
) -> MessageResponse:
    """Delete an account. 404 if it does not exist, 403 for the caller's own account."""
    user_store: UserStore = request.app.state.user_store
    target = user_store.get_by_id(user_id)
    if target is None:
        raise NotFound("User not found.")
    enforce(authorize_user_deletion(identity, target), Forbidden("Cannot delete your own account."))

    if not user_store.delete_user(user_id):
        raise NotFound("User not found.")
    logger.info("Admin id=%d deleted user id=%d", identity.id, user_id)
    return MessageResponse(message="User deleted successfully")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@router.get("/tasks", response_model=list[AdminTaskResponse])
def list_all_tasks(request: Request) -> list[AdminTaskResponse]:
    task_store: TaskStore = request.app.state.task_store
    return [AdminTaskResponse.from_row(row) for row in task_store.list_all_with_owners()]


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_any_task(
    request: Request,
    task_id: int,
    identity: Identity = Depends(require_admin),
) -> MessageResponse:
    task_store: TaskStore = request.app.state.task_store
    if not task_store.delete_task(task_id, is_admin=True):
        raise NotFound("Task not found.")
    logger.info("Admin id=%d deleted task id=%d", identity.id, task_id)
    return MessageResponse(message="Task deleted successfully")
