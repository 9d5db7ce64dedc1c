from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _to_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to an aware UTC datetime.
    - Naive values are taken to already be UTC.
    - Aware values are converted; an offset that pushes the value outside
      0001-01-01..9999-12-31 is rejected.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError("timestamp is out of range once converted to UTC") from e


class _CamelModel(BaseModel):
    # Wire format is camelCase; snake_case is accepted on input as well.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TodoTaskIn(_CamelModel):
    """
    Request body for creating or replacing a task.

    Text fields are not length-checked here: emptiness is reported by the task
    validator as a list of failures (HTTP 400) rather than a 422. `id` and
    `lastModified` are accepted for round-tripping but are always assigned by
    the server.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Test Title",
                "details": "Test Details",
                "author": "M. Jordan",
                "started": "2025-01-31T09:00:00Z",
                "completed": "2025-02-01T17:30:00Z",
            }
        },
    )

    id: Optional[str] = Field(default=None, description="Ignored on create; overwritten by the path id on update")
    title: Optional[str] = Field(default=None, description="Short title for the task")
    details: Optional[str] = Field(default=None, description="Detailed description of the task")
    author: Optional[str] = Field(default=None, description="Author of the task")
    started: datetime = Field(..., description="When work started (ISO8601; naive values are UTC)")
    completed: datetime = Field(..., description="When work completed (ISO8601; naive values are UTC)")
    last_modified: Optional[datetime] = Field(default=None, description="Ignored; set by the server")

    @field_validator("started", "completed", "last_modified")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        """
        Convert timestamps to aware UTC.
        """
        return None if v is None else _to_utc(v)


# PUBLIC_INTERFACE
class TodoTaskOut(_CamelModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "title": "Test Title",
                "details": "Test Details",
                "author": "M. Jordan",
                "started": "2025-01-31T09:00:00Z",
                "completed": "2025-02-01T17:30:00Z",
                "lastModified": "2025-02-01T17:31:02.123456Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    details: str = Field(..., description="Detailed description of the task")
    author: str = Field(..., description="Author of the task")
    started: datetime = Field(..., description="Start timestamp")
    completed: datetime = Field(..., description="Completion timestamp")
    last_modified: datetime = Field(..., description="Last create/update timestamp")


# PUBLIC_INTERFACE
class ValidationFailure(_CamelModel):
    """
    A single field-level rule violation, reported in a list with HTTP 400.
    """

    property_name: str = Field(..., description="Name of the offending field, e.g. 'Title'")
    error_message: str = Field(..., description="Human readable description of the failure")
    attempted_value: Any = Field(default=None, description="The value that failed the rule")
