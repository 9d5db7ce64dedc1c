from __future__ import annotations

from typing import List

from .schemas import TodoTaskIn, ValidationFailure

_REQUIRED_TEXT_FIELDS = (
    ("title", "Title"),
    ("details", "Details"),
    ("author", "Author"),
)


# PUBLIC_INTERFACE
def validate_task(task: TodoTaskIn, *, check_schedule: bool = True) -> List[ValidationFailure]:
    """
    Check a candidate task and return its field-level failures.

    Rules:
    - title, details and author must be non-empty after trimming (None counts as empty)
    - when check_schedule is True, started must be strictly earlier than completed

    Returns:
        An empty list when the task is valid.
    """
    failures: List[ValidationFailure] = []

    for attr, name in _REQUIRED_TEXT_FIELDS:
        value = getattr(task, attr)
        if value is None or not value.strip():
            failures.append(
                ValidationFailure(
                    property_name=name,
                    error_message=f"'{name}' must not be empty.",
                    attempted_value=value,
                )
            )

    if check_schedule and not task.started < task.completed:
        failures.append(
            ValidationFailure(
                property_name="Started",
                error_message="'Started' must be less than 'Completed'.",
                attempted_value=task.started,
            )
        )

    return failures
