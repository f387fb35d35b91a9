"""
tasks/models.py -- Domain dataclasses for tasks.

Pure data containers. Ownership rules live in auth/access.py; persistence and
filtering live in tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
TASK_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED)


@dataclass
class Task:
    """A unit of work owned by exactly one user.

    id is None before the record is written to the database.
    """

    owner_id: int
    title: str
    description: Optional[str] = None
    status: str = STATUS_PENDING
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class TaskWithOwner:
    """Row of the admin-wide task listing: a task plus who owns it."""

    task: Task
    owner_name: str
    owner_email: str
