from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from fastapi import Depends

from .models import TodoTaskEntity
from .schemas import TodoTaskIn
from .settings import Settings, get_settings


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def create(self, task: TodoTaskIn) -> TodoTaskEntity:
        """
        Store a new task under a freshly generated id and return it.
        Client-supplied id and last_modified are ignored.
        Raises DuplicateTaskIdError if the generated id is already taken.
        """

    @abstractmethod
    def get(self, task_id: str) -> Optional[TodoTaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def list(self) -> List[TodoTaskEntity]:
        """Return every stored task, in no particular order."""

    @abstractmethod
    def update(self, task_id: str, task: TodoTaskIn) -> Optional[TodoTaskEntity]:
        """Replace all client-controlled fields of a task. Return it, or None if not found."""

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        """Delete a task by id. Return True if deleted, False if not found."""


# PUBLIC_INTERFACE
def get_task_store(settings: Settings = Depends(get_settings)) -> TaskRepository:
    """
    FastAPI dependency returning the SQLite task store for the configured
    connection string. Stores hold no state, one is built per request.
    """
    from .db import SQLiteTaskStore, SqliteConnectionFactory

    return SQLiteTaskStore(SqliteConnectionFactory.from_connection_string(settings.connection_string))
