"""
core/database.py -- Shared SQLAlchemy Core schema and database handle.

Both stores (auth/store.py, tasks/store.py) receive the same Database handle
at construction. There is no module-level engine: whoever builds the app (the
lifespan in api/main.py, the CLI, or a test fixture) owns the handle and
closes it.

One schema lives here because the admin task view joins tasks to their owners,
so both tables must share a MetaData and an engine.

Security: all queries built on these tables use bound parameters.

Usage:
    db = Database("sqlite:///taskboard.db")
    users = UserStore(db)
    tasks = TaskStore(db)
    db.close()
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("taskboard.db")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

# sqlite_autoincrement: ids are never reused after a delete. A token names its
# user by id, so a reused id would hand a deleted user's token to a newcomer.

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# SQLite connection pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection.

    SQLite PRAGMAs are per-connection and are not inherited by new connections
    from the pool. foreign_keys is off by default in SQLite; without it the
    ON DELETE CASCADE on tasks.owner_id would be ignored.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class Database:
    """Owns the engine and creates the schema on construction."""

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        is_sqlite = db_url.startswith("sqlite")
        if is_sqlite:
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if is_sqlite:
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        metadata.create_all(self.engine)

    def connect(self) -> Connection:
        return self.engine.connect()

    def begin(self):
        """Context manager yielding a connection inside a committed-on-exit transaction."""
        return self.engine.begin()

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
