from __future__ import annotations

from typing import List

from .schemas import ValidationFailure


class TaskValidationError(Exception):
    """Raised when a task payload breaks one or more field rules."""

    def __init__(self, failures: List[ValidationFailure]) -> None:
        super().__init__(f"{len(failures)} validation failure(s)")
        self.failures = failures


class DuplicateTaskIdError(Exception):
    """Raised when a generated task id already exists in the store."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"A task with id {task_id!r} already exists")
        self.task_id = task_id

    def as_failure(self) -> ValidationFailure:
        return ValidationFailure(
            property_name="Id",
            error_message="A task with this id already exists",
            attempted_value=self.task_id,
        )
