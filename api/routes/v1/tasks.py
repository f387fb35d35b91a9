"""
api/routes/v1/tasks.py -- Per-user task CRUD routes.

Routes:
  GET    /tasks            -- caller's tasks, optional ?search= and ?status=
  POST   /tasks            -- create a task owned by the caller
  GET    /tasks/{task_id}  -- one task (owner or admin)
  PUT    /tasks/{task_id}  -- update a task (owner or admin)
  DELETE /tasks/{task_id}  -- delete a task (owner or admin)

Ownership: every route that addresses a single task fetches it, then asks
auth/access.py. A task that does not exist and a task the caller may not touch
both answer 404, so ids of other users' tasks cannot be enumerated.

All routes require a valid bearer token (router-level dependency).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import MessageResponse, TaskCreate, TaskResponse, TaskStatusEnum, TaskUpdate
from auth.access import authorize_task_mutation, authorize_task_read, enforce
from auth.dependencies import get_current_identity
from auth.models import ROLE_ADMIN, Identity
from core.errors import NotFound
from tasks.models import Task
from tasks.store import TaskStore

router = APIRouter(dependencies=[Depends(get_current_identity)])


def _task_not_found() -> NotFound:
    return NotFound("Task not found.")


def _load_task(task_store: TaskStore, task_id: int) -> Task:
    task = task_store.get_task(task_id)
    if task is None:
        raise _task_not_found()
    return task


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(
    request: Request,
    search: Optional[str] = Query(default=None, max_length=255),
    status: Optional[TaskStatusEnum] = Query(default=None),
    identity: Identity = Depends(get_current_identity),
) -> list[TaskResponse]:
    """Return the caller's tasks, newest first.

    search matches a substring of the title; status matches exactly. When both
    are given a task must satisfy both.
    """
    task_store: TaskStore = request.app.state.task_store
    tasks = task_store.list_for_owner(
        identity.id,
        title_contains=search or None,
        status=status.value if status else None,
    )
    return [TaskResponse.from_task(t) for t in tasks]


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Create a task owned by the caller. status defaults to "pending"."""
    task_store: TaskStore = request.app.state.task_store
    task = task_store.create_task(
        identity.id,
        body.title,
        description=body.description,
        status=body.status.value,
    )
    return TaskResponse.from_task(task)


# ---------------------------------------------------------------------------
# Single task
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    request: Request,
    task_id: int,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, task_id)
    enforce(authorize_task_read(identity, task), _task_not_found())
    return TaskResponse.from_task(task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Replace the title and, when present in the body, description and status.

    The update is issued against the task's recorded owner, so the store's
    owner check still applies when an admin edits someone else's task.
    """
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, task_id)
    enforce(authorize_task_mutation(identity, task), _task_not_found())

    fields: dict = {"title": body.title}
    if "description" in body.model_fields_set:
        fields["description"] = body.description
    if body.status is not None:
        fields["status"] = body.status.value

    if not task_store.update_task(task_id, task.owner_id, **fields):
        raise _task_not_found()
    return TaskResponse.from_task(_load_task(task_store, task_id))


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_task(
    request: Request,
    task_id: int,
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Delete a task. Owners may delete their own; admins may delete any."""
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, task_id)
    enforce(authorize_task_mutation(identity, task), _task_not_found())

    deleted = task_store.delete_task(task_id, owner_id=identity.id, is_admin=identity.role == ROLE_ADMIN)
    if not deleted:
        raise _task_not_found()
    return MessageResponse(message="Task deleted successfully")
