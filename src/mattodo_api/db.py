from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ContextManager, Generator, List, Optional

from .errors import DuplicateTaskIdError
from .models import TodoTaskEntity
from .repositories import TaskRepository
from .schemas import TodoTaskIn

logger = logging.getLogger(__name__)

_DATA_SOURCE_KEYS = {"data source", "datasource", "filename"}


@dataclass(frozen=True)
class _Cols:
    table: str = "Tasks"
    id: str = "Id"
    title: str = "Title"
    details: str = "Details"
    author: str = "Author"
    started: str = "Started"
    completed: str = "Completed"
    last_modified: str = "LastModified"


_COLS = _Cols()


def parse_data_source(connection_string: str) -> str:
    """
    Extract the SQLite database target from a connection string.

    Accepts:
    - 'Data Source=./data/mattodo.db' (';'-separated key=value pairs, keys case-insensitive)
    - a plain filesystem path
    - a 'file:' URI, returned unchanged
    """
    s = connection_string.strip()
    if s.startswith("file:") or "=" not in s:
        return s
    for part in s.split(";"):
        key, _, value = part.partition("=")
        if key.strip().lower() in _DATA_SOURCE_KEYS and value.strip():
            return value.strip()
    raise ValueError(f"Connection string has no Data Source: {connection_string!r}")


# PUBLIC_INTERFACE
class ConnectionFactory(ABC):
    """Hands out a fresh database connection per call."""

    @abstractmethod
    def connect(self) -> ContextManager[sqlite3.Connection]:
        """Return a context manager yielding an open connection; commit on success, always close."""


class SqliteConnectionFactory(ConnectionFactory):
    """
    Connection factory for a single SQLite database. Holds only the immutable
    database target, so one instance can be shared freely.
    """

    def __init__(self, database: str) -> None:
        self.database = database

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "SqliteConnectionFactory":
        return cls(parse_data_source(connection_string))

    @property
    def is_uri(self) -> bool:
        return self.database.startswith("file:")

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.database, uri=self.is_uri)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()


# PUBLIC_INTERFACE
class DatabaseInitializer:
    """Creates the tasks table if it does not exist yet. Safe to run repeatedly."""

    def __init__(self, connection_factory: SqliteConnectionFactory) -> None:
        self._factory = connection_factory

    def initialize(self) -> None:
        if not self._factory.is_uri and self._factory.database != ":memory:":
            os.makedirs(os.path.dirname(self._factory.database) or ".", exist_ok=True)
        with self._factory.connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.details} TEXT NOT NULL,
                    {_COLS.author} TEXT NOT NULL,
                    {_COLS.started} TEXT NOT NULL,
                    {_COLS.completed} TEXT NOT NULL,
                    {_COLS.last_modified} TEXT NOT NULL
                )
                """
            )
        logger.info("Task table ready database=%s", self._factory.database)


class SQLiteTaskStore(TaskRepository):
    """
    SQLite implementation of the task repository.

    Every operation opens its own connection through the factory and touches
    at most one row. There is no locking: two concurrent updates of the same
    task are last-writer-wins.
    """

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._factory = connection_factory

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _new_id(self) -> str:
        return str(uuid.uuid4())

    def _row_to_entity(self, row: sqlite3.Row) -> TodoTaskEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "details": str(row[_COLS.details]),
            "author": str(row[_COLS.author]),
            "started": datetime.fromisoformat(row[_COLS.started]),
            "completed": datetime.fromisoformat(row[_COLS.completed]),
            "last_modified": datetime.fromisoformat(row[_COLS.last_modified]),
        }

    def _select(self, conn: sqlite3.Connection, task_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ? LIMIT 1", (task_id,)
        ).fetchone()

    def create(self, task: TodoTaskIn) -> TodoTaskEntity:
        entity: TodoTaskEntity = {
            "id": self._new_id(),
            "title": task.title or "",
            "details": task.details or "",
            "author": task.author or "",
            "started": task.started,
            "completed": task.completed,
            "last_modified": self._now(),
        }
        with self._factory.connect() as conn:
            if self._select(conn, entity["id"]) is not None:
                logger.warning("Generated task id collided with an existing row id=%s", entity["id"])
                raise DuplicateTaskIdError(entity["id"])
            try:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.details}, {_COLS.author},
                        {_COLS.started}, {_COLS.completed}, {_COLS.last_modified})
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entity["id"],
                        entity["title"],
                        entity["details"],
                        entity["author"],
                        entity["started"].isoformat(),
                        entity["completed"].isoformat(),
                        entity["last_modified"].isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                # A concurrent writer took the id between the check and the insert.
                if self._select(conn, entity["id"]) is not None:
                    raise DuplicateTaskIdError(entity["id"]) from e
                raise
        logger.info("Created task id=%s", entity["id"])
        return entity

    def get(self, task_id: str) -> Optional[TodoTaskEntity]:
        logger.debug("Fetching task id=%s", task_id)
        with self._factory.connect() as conn:
            row = self._select(conn, task_id)
            return self._row_to_entity(row) if row else None

    def list(self) -> List[TodoTaskEntity]:
        with self._factory.connect() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table}").fetchall()
        logger.debug("Listed %d task(s)", len(rows))
        return [self._row_to_entity(r) for r in rows]

    def update(self, task_id: str, task: TodoTaskIn) -> Optional[TodoTaskEntity]:
        entity: TodoTaskEntity = {
            "id": task_id,
            "title": task.title or "",
            "details": task.details or "",
            "author": task.author or "",
            "started": task.started,
            "completed": task.completed,
            "last_modified": self._now(),
        }
        with self._factory.connect() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.details} = ?, {_COLS.author} = ?,
                    {_COLS.started} = ?, {_COLS.completed} = ?, {_COLS.last_modified} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    entity["title"],
                    entity["details"],
                    entity["author"],
                    entity["started"].isoformat(),
                    entity["completed"].isoformat(),
                    entity["last_modified"].isoformat(),
                    task_id,
                ),
            )
            if cur.rowcount == 0:
                logger.info("Update skipped, task not found id=%s", task_id)
                return None
        logger.info("Updated task id=%s", task_id)
        return entity

    def delete(self, task_id: str) -> bool:
        with self._factory.connect() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            deleted = cur.rowcount > 0
        logger.info("Delete task id=%s deleted=%s", task_id, deleted)
        return deleted
