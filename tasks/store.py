"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclasses in tasks/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership is enforced twice. Routes ask auth/access.py first; the store then
repeats the owner check in the WHERE clause of update_task() and
delete_task(), so a missed check in a route cannot touch another user's task.

Security: all queries use bound parameters. The title search escapes LIKE
wildcards, so a search for "100%" matches the literal text.

Usage:
    store = TaskStore(db)
    task = store.create_task(owner_id, "Write report")
    store.list_for_owner(owner_id, status="completed")
    store.update_task(task.id, owner_id, status="in-progress")
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from core.database import Database, tasks, users
from core.errors import NotFound
from tasks.models import STATUS_PENDING, TASK_STATUSES, Task, TaskWithOwner

# Columns update_task() may change. owner_id and created_at are immutable.
_UPDATABLE_FIELDS = frozenset({"title", "description", "status"})

_NEWEST_FIRST = (tasks.c.created_at.desc(), tasks.c.id.desc())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_task(
        self,
        owner_id: int,
        title: str,
        description: Optional[str] = None,
        status: Optional[str] = STATUS_PENDING,
    ) -> Task:
        """Insert a task for owner_id and return it with id and created_at set.

        Raises NotFound if owner_id does not reference an existing user. This
        happens when a still-valid token outlives its deleted account.
        """
        status = status or STATUS_PENDING
        if status not in TASK_STATUSES:
            raise ValueError(f"Unknown task status: {status!r}")
        task = Task(
            owner_id=owner_id,
            title=title,
            description=description,
            status=status,
            created_at=_now_iso(),
        )
        try:
            with self.db.begin() as conn:
                result = conn.execute(
                    tasks.insert().values(
                        owner_id=task.owner_id,
                        title=task.title,
                        description=task.description,
                        status=task.status,
                        created_at=task.created_at,
                    )
                )
                task.id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise NotFound("User not found.") from exc
        return task

    def update_task(self, task_id: int, owner_id: int, **fields) -> bool:
        """Update title/description/status of a task owned by owner_id.

        Returns True only if a task with that id AND that owner exists. Unknown
        field names or statuses raise ValueError rather than being ignored.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)!r}")
        if "status" in fields and fields["status"] not in TASK_STATUSES:
            raise ValueError(f"Unknown task status: {fields['status']!r}")
        if not fields:
            task = self.get_task(task_id)
            return task is not None and task.owner_id == owner_id
        with self.db.begin() as conn:
            result = conn.execute(
                tasks.update().where((tasks.c.id == task_id) & (tasks.c.owner_id == owner_id)).values(**fields)
            )
        return result.rowcount > 0

    def delete_task(self, task_id: int, owner_id: Optional[int] = None, is_admin: bool = False) -> bool:
        """Delete a task. Admins may delete any task; everyone else only their own.

        With is_admin=True the owner_id argument is ignored. With is_admin=False
        a missing owner_id matches nothing.
        """
        if is_admin:
            condition = tasks.c.id == task_id
        else:
            if owner_id is None:
                return False
            condition = (tasks.c.id == task_id) & (tasks.c.owner_id == owner_id)
        with self.db.begin() as conn:
            result = conn.execute(tasks.delete().where(condition))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_task(self, task_id: int) -> Optional[Task]:
        """Look up a task by id regardless of owner. Callers must authorize the result."""
        with self.db.connect() as conn:
            row = conn.execute(tasks.select().where(tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_for_owner(
        self,
        owner_id: int,
        title_contains: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Task]:
        """Return owner_id's tasks, newest first.

        Both filters are optional; when both are given a task must match both.
        title_contains is a substring match (case-insensitive for ASCII under
        SQLite LIKE). status must match exactly.
        """
        query = tasks.select().where(tasks.c.owner_id == owner_id)
        if title_contains:
            query = query.where(tasks.c.title.contains(title_contains, autoescape=True))
        if status:
            query = query.where(tasks.c.status == status)
        with self.db.connect() as conn:
            rows = conn.execute(query.order_by(*_NEWEST_FIRST)).fetchall()
        return [_row_to_task(r) for r in rows]

    def list_all_with_owners(self) -> list[TaskWithOwner]:
        """Every task with its owner's name and email, newest first. Admin-only view."""
        query = (
            select(tasks, users.c.name.label("owner_name"), users.c.email.label("owner_email"))
            .select_from(tasks.join(users, tasks.c.owner_id == users.c.id))
            .order_by(*_NEWEST_FIRST)
        )
        with self.db.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [TaskWithOwner(task=_row_to_task(r), owner_name=r.owner_name, owner_email=r.owner_email) for r in rows]


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        status=row.status,
        created_at=row.created_at,
    )
