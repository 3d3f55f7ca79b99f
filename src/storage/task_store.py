"""
Task persistence.

One TaskStore interface, two implementations: InMemoryTaskStore (non-durable,
lives as long as the process) and PostgresTaskStore (asyncpg). The app picks
one at startup with create_task_store() and hands it to the request handlers.
"""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import asyncpg
from pydantic import ValidationError

from duelist.errors import BackendError, InvalidTaskUpdate, NotFound
from duelist.models import Task, TaskDraft, TaskUpdate
from storage import db

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "due_date", "description", "completed")

# driver, protocol and socket failures all surface as BackendError
DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore(ABC):
    @abstractmethod
    async def insert_many(self, drafts: Iterable[TaskDraft]) -> list[Task]:
        """Store drafts as new tasks; ids and created_at are assigned here."""

    @abstractmethod
    async def list_all(self) -> list[Task]:
        """All tasks, ascending by due_date (insertion order on ties)."""

    @abstractmethod
    async def update_by_id(self, task_id: int, fields: dict[str, Any]) -> Task:
        """Shallow-merge ``fields`` into the task. Raises InvalidTaskUpdate or NotFound."""

    @abstractmethod
    async def delete_by_id(self, task_id: int) -> bool:
        """Remove the task. Raises NotFound."""

    @abstractmethod
    def describe(self) -> str:
        ...

    async def close(self) -> None:
        return None


def _updatable(fields: dict[str, Any]) -> dict[str, Any]:
    """Validated subset of ``fields`` both backends apply; unknown keys are dropped."""
    try:
        changes = TaskUpdate.model_validate(fields).changes()
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidTaskUpdate(f"Invalid task update: {where} {first.get('msg', '')}".strip()) from e
    return {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}


class InMemoryTaskStore(TaskStore):
    """Process-local store used when no database is configured.

    Contents are lost on restart.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._ids = itertools.count(1)

    def describe(self) -> str:
        return "in-memory"

    async def insert_many(self, drafts: Iterable[TaskDraft]) -> list[Task]:
        created = [
            Task(
                id=next(self._ids),
                title=draft.title,
                due_date=draft.due_date,
                description=draft.description or "",
                completed=False,
                created_at=_utcnow(),
            )
            for draft in drafts
        ]
        self._tasks.extend(created)
        return [t.model_copy() for t in created]

    async def list_all(self) -> list[Task]:
        # sorted() is stable, so equal dates keep insertion order
        return [t.model_copy() for t in sorted(self._tasks, key=lambda t: t.due_date)]

    def _index_of(self, task_id: int) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFound()

    async def update_by_id(self, task_id: int, fields: dict[str, Any]) -> Task:
        changes = _updatable(fields)
        i = self._index_of(task_id)
        updated = Task.model_validate({**self._tasks[i].model_dump(), **changes})
        self._tasks[i] = updated
        return updated.model_copy()

    async def delete_by_id(self, task_id: int) -> bool:
        del self._tasks[self._index_of(task_id)]
        return True


def _row_to_task(record) -> Task:
    return Task(
        id=record["id"],
        title=record["title"],
        due_date=record["due_date"],
        description=record["description"] or "",
        completed=record["completed"],
        created_at=record["created_at"],
    )


class PostgresTaskStore(TaskStore):
    """asyncpg-backed store. Driver failures surface as BackendError."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    def describe(self) -> str:
        return "postgres"

    async def insert_many(self, drafts: Iterable[TaskDraft]) -> list[Task]:
        drafts = list(drafts)
        if not drafts:
            return []

        query = """
            INSERT INTO tasks (title, due_date, description, completed, created_at)
            SELECT title, due_date, description, FALSE, $4
            FROM UNNEST($1::text[], $2::text[], $3::text[])
                AS t(title, due_date, description)
            RETURNING *
        """
        try:
            async with self.pool.acquire() as conn:
                records = await conn.fetch(
                    query,
                    [d.title for d in drafts],
                    [d.due_date for d in drafts],
                    [d.description or "" for d in drafts],
                    _utcnow(),
                )
        except DB_ERRORS as e:
            logger.error(f"Failed to insert {len(drafts)} tasks: {e}")
            raise BackendError(f"Database error: {e}") from e

        # RETURNING keeps VALUES order in practice; sort by id to be explicit
        return sorted((_row_to_task(r) for r in records), key=lambda t: t.id)

    async def list_all(self) -> list[Task]:
        query = "SELECT * FROM tasks ORDER BY due_date ASC, id ASC"
        try:
            async with self.pool.acquire() as conn:
                records = await conn.fetch(query)
        except DB_ERRORS as e:
            logger.error(f"Failed to list tasks: {e}")
            raise BackendError(f"Database error: {e}") from e
        return [_row_to_task(r) for r in records]

    async def update_by_id(self, task_id: int, fields: dict[str, Any]) -> Task:
        changes = _updatable(fields)
        try:
            async with self.pool.acquire() as conn:
                if not changes:
                    record = await conn.fetchrow("SELECT * FROM tasks WHERE id = $1", task_id)
                else:
                    # column names come from UPDATABLE_FIELDS, never from the request
                    assignments = ", ".join(
                        f"{name} = ${i}" for i, name in enumerate(changes, start=2)
                    )
                    record = await conn.fetchrow(
                        f"UPDATE tasks SET {assignments} WHERE id = $1 RETURNING *",
                        task_id,
                        *changes.values(),
                    )
        except DB_ERRORS as e:
            logger.error(f"Failed to update task {task_id}: {e}")
            raise BackendError(f"Database error: {e}") from e

        if record is None:
            raise NotFound()
        return _row_to_task(record)

    async def delete_by_id(self, task_id: int) -> bool:
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute("DELETE FROM tasks WHERE id = $1", task_id)
        except DB_ERRORS as e:
            logger.error(f"Failed to delete task {task_id}: {e}")
            raise BackendError(f"Database error: {e}") from e

        # execute returns e.g. "DELETE 1"
        if result.split()[-1] == "0":
            raise NotFound()
        return True

    async def close(self) -> None:
        await db.close_db_pool(self.pool)


async def create_task_store(database_url: Optional[str] = None) -> TaskStore:
    """Pick the backend once: PostgreSQL when a URL is configured, memory otherwise."""
    dsn = database_url or db.DATABASE_URL
    if not dsn:
        logger.info("Using in-memory task storage (DATABASE_URL not set)")
        return InMemoryTaskStore()

    pool = await db.create_db_pool(dsn)
    await db.init_schema(pool)
    logger.info("Using PostgreSQL task storage")
    return PostgresTaskStore(pool)
