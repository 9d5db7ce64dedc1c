from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TodoTaskEntity(TypedDict):
    """
    Stored representation of a todo task as returned by the task store.

    Fields:
    - id: Unique string identifier, generated by the store at creation
    - title: Short title (non-empty after trimming)
    - details: Free-text details (non-empty after trimming)
    - author: Who wrote the task (non-empty after trimming)
    - started: When work on the task started (aware UTC datetime)
    - completed: When the task was completed (aware UTC datetime)
    - last_modified: Set by the store on every create/update (aware UTC datetime)
    """

    id: str
    title: str
    details: str
    author: str
    started: datetime
    completed: datetime
    last_modified: datetime
