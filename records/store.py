"""
records/store.py -- SQLAlchemy Core persistence layer for first-party records.

Uses SQLAlchemy Core (not ORM) so the dataclasses in records/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. RecordStore is the repository; the
_row_to_* functions are the mappers. Handlers never touch SQL directly.

One preferences row per user:
  user_preferences.user_id carries a UNIQUE index, and every write goes
  through INSERT ... ON CONFLICT (user_id). Two concurrent "create if absent"
  calls therefore cannot both insert: the loser's INSERT turns into an UPDATE
  (upsert_preferences) or a no-op (insert_default_preferences). There is no
  read-then-write window.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = RecordStore()                               # SQLite default
    store = RecordStore("postgresql://user:pw@host/db") # PostgreSQL
    store.insert_default_preferences("a1b2...")
    prefs = store.upsert_preferences("a1b2...", {"theme": "dark"})
    task_id = store.create_task(Task(text="Ship it", owner_id="a1b2..."))
    store.close()
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from core.models import DEFAULT_PREFERENCES
from records.models import Task, UserPreferences

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'boilerplate_records.db'}"

# Fields a caller may change through upsert_preferences().
PREFERENCE_FIELDS: frozenset = frozenset(DEFAULT_PREFERENCES)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_preferences = Table(
    "user_preferences",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False),
    Column("theme", String(16), nullable=False, server_default="system"),
    Column("notifications", Integer, nullable=False, server_default="1"),
    Column("language", String(16), nullable=False, server_default="en"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("uq_user_preferences_user_id", "user_id", unique=True),
)

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("text", Text, nullable=False),
    Column("is_completed", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("owner_id", String(64)),
    Index("ix_tasks_owner_id", "owner_id"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_db(fields: dict) -> dict:
    """Convert Python bools to the 0/1 integers stored in SQLite."""
    out = dict(fields)
    if "notifications" in out:
        out["notifications"] = 1 if out["notifications"] else 0
    return out


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RecordStore:
    """Repository for UserPreferences and Task entities."""

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def _insert(self, table: Table):
        """Return a dialect-specific INSERT that supports ON CONFLICT."""
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(table)
        if self.engine.dialect.name == "sqlite":
            return sqlite.insert(table)
        raise NotImplementedError(f"ON CONFLICT upsert is not supported for dialect {self.engine.dialect.name!r}")

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def insert_default_preferences(self, user_id: str) -> bool:
        """Create the default row for user_id unless one already exists.

        Returns True if a row was inserted, False if one was already present.
        Safe to call any number of times for the same user.
        """
        now = _now_iso()
        stmt = (
            self._insert(_preferences)
            .values(user_id=user_id, created_at=now, updated_at=now, **_to_db(DEFAULT_PREFERENCES))
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt)
            conn.commit()
        return result.rowcount > 0

    def upsert_preferences(self, user_id: str, fields: dict) -> Optional[UserPreferences]:
        """Patch the user's row, or insert one with defaults + fields if absent.

        Only keys in PREFERENCE_FIELDS are accepted. Unknown keys raise
        ValueError rather than being silently dropped.
        """
        unknown = set(fields) - PREFERENCE_FIELDS
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)!r}")
        now = _now_iso()
        insert_values = _to_db({**DEFAULT_PREFERENCES, **fields})
        stmt = self._insert(_preferences).values(user_id=user_id, created_at=now, updated_at=now, **insert_values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={**_to_db(fields), "updated_at": now},
        )
        with self.engine.connect() as conn:
            conn.execute(stmt)
            conn.commit()
        return self.get_preferences(user_id)

    def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        with self.engine.connect() as conn:
            row = conn.execute(_preferences.select().where(_preferences.c.user_id == user_id)).fetchone()
        return _row_to_preferences(row) if row is not None else None

    def count_preferences(self, user_id: str) -> int:
        with self.engine.connect() as conn:
            rows = conn.execute(_preferences.select().where(_preferences.c.user_id == user_id)).fetchall()
        return len(rows)

    def delete_preferences(self, user_id: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_preferences.delete().where(_preferences.c.user_id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(self, task: Task) -> int:
        """Insert a task and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    text=task.text,
                    is_completed=1 if task.is_completed else 0,
                    created_at=task.created_at or _now_iso(),
                    owner_id=task.owner_id,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_task(self, task_id: int) -> Optional[Task]:
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_tasks(self, owner_id: str) -> list[Task]:
        """Return the owner's tasks, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tasks.select().where(_tasks.c.owner_id == owner_id).order_by(_tasks.c.created_at, _tasks.c.id)
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def toggle_task(self, task_id: int) -> bool:
        """Flip is_completed in a single statement. Returns False if the task is gone."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update().where(_tasks.c.id == task_id).values(is_completed=1 - _tasks.c.is_completed)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_task(self, task_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def delete_tasks_by_owner(self, owner_id: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.owner_id == owner_id))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_preferences(row) -> UserPreferences:
    return UserPreferences(
        id=row.id,
        user_id=row.user_id,
        theme=row.theme,
        notifications=bool(row.notifications),
        language=row.language,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        text=row.text,
        is_completed=bool(row.is_completed),
        created_at=row.created_at,
        owner_id=row.owner_id,
    )
