from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..auth import require_api_key
from ..errors import TaskValidationError
from ..repositories import TaskRepository, get_task_store
from ..schemas import TodoTaskIn, TodoTaskOut, ValidationFailure
from ..validators import validate_task

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(require_api_key)],
)

_NOT_FOUND = "Task not found"


def _get_store(store: TaskRepository = Depends(get_task_store)) -> TaskRepository:
    """
    Dependency wrapper for the task store to keep signatures clean.
    """
    return store


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoTaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description=(
        "Create a new task. The id and lastModified fields are assigned by the server; "
        "any client-supplied values are ignored."
    ),
    responses={
        201: {"description": "Task created successfully"},
        400: {"model": List[ValidationFailure], "description": "Validation failures or duplicate id"},
    },
)
def create_task(payload: TodoTaskIn, response: Response, store: TaskRepository = Depends(_get_store)) -> TodoTaskOut:
    """
    Create a new task. The started/completed ordering is only checked on update.
    """
    failures = validate_task(payload, check_schedule=False)
    if failures:
        raise TaskValidationError(failures)

    created = store.create(payload)
    response.headers["Location"] = f"/tasks/{created['id']}"
    return TodoTaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoTaskOut],
    summary="List Tasks",
    description="Return every task. No pagination, filtering or ordering is applied.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_tasks(store: TaskRepository = Depends(_get_store)) -> List[TodoTaskOut]:
    return [TodoTaskOut(**t) for t in store.list()]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TodoTaskOut,
    summary="Get Task",
    description="Get a single task by id.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, store: TaskRepository = Depends(_get_store)) -> TodoTaskOut:
    """
    Retrieve a single task by its id.
    """
    item = store.get(task_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoTaskOut(**item)


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TodoTaskOut,
    summary="Replace Task",
    description=(
        "Replace every client-controlled field of an existing task. The id in the path "
        "is authoritative; an id in the body is ignored. started must be earlier than completed."
    ),
    responses={
        200: {"description": "Task updated"},
        400: {"model": List[ValidationFailure], "description": "Validation failures"},
        404: {"description": "Task not found"},
    },
)
def replace_task(task_id: str, payload: TodoTaskIn, store: TaskRepository = Depends(_get_store)) -> TodoTaskOut:
    """
    Full replacement of a task. An unknown id yields 404 whatever the payload.
    """
    if store.get(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)

    failures = validate_task(payload, check_schedule=True)
    if failures:
        raise TaskValidationError(failures)

    # The row can still vanish between the lookup and the write.
    updated = store.update(task_id, payload)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoTaskOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by id.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, store: TaskRepository = Depends(_get_store)) -> None:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    if not store.delete(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return None
