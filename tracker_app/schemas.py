"""
Request body schemas.

Each endpoint that accepts a JSON body validates it into one of the pydantic
models below before any business logic runs.  :func:`parse_body` is the
single entry point: it reads the request JSON and converts every pydantic
failure into :class:`~tracker_app.errors.ValidationFailed` carrying the first
human-readable problem.

The loosely typed ``completed`` flag is normalised here, once, by
:func:`normalize_completed`; everything downstream only ever sees a ``bool``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, TypeVar

from flask import request
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)

from .errors import ValidationFailed
from .models import TaskPriority

MIN_PASSWORD_LENGTH = 8
MAX_EMAIL_LENGTH = 120

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def normalize_completed(value: Any) -> bool:
    """
    Coerce the accepted ``completed`` representations into a strict bool.

    Accepts booleans, the integers ``0``/``1`` and the strings
    ``true/false``, ``yes/no``, ``1/0`` (case-insensitive, surrounding
    whitespace ignored).

    Raises:
        ValueError: For any other value.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError("completed must be a boolean")


def _ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Schema(BaseModel):
    # Unknown fields (id, owner on create, timestamps, ...) are dropped
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Password = Annotated[str, StringConstraints(min_length=MIN_PASSWORD_LENGTH, max_length=128)]


class _EmailSchema(_Schema):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        if len(value) > MAX_EMAIL_LENGTH:
            raise ValueError(f"must be {MAX_EMAIL_LENGTH} characters or less")
        return value.lower()


class RegisterRequest(_EmailSchema):
    name: Name
    password: Password


class LoginRequest(_Schema):
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: Annotated[str, StringConstraints(min_length=1)]


class ProfileUpdateRequest(_EmailSchema):
    name: Name


class PasswordChangeRequest(_Schema):
    current_password: Annotated[str, StringConstraints(min_length=1)] = Field(alias="currentPassword")
    new_password: Password = Field(alias="newPassword")


class TaskCreate(_Schema):
    title: Title
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = Field(default=None, alias="dueDate")
    completed: bool = False

    @field_validator("completed", mode="before")
    @classmethod
    def _normalize_completed(cls, value: Any) -> bool:
        return normalize_completed(value)

    @field_validator("due_date")
    @classmethod
    def _utc_due_date(cls, value: datetime | None) -> datetime | None:
        return _ensure_utc(value)


class TaskUpdate(_Schema):
    """
    Partial task update.

    Only fields present in the body are applied; use ``model_fields_set`` to
    tell "absent" from "set to null".  ``owner`` is accepted only so that the
    route can reject an attempt to reassign the task.
    """

    title: Title | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = Field(default=None, alias="dueDate")
    completed: bool | None = None
    owner: Any = None

    @field_validator("completed", mode="before")
    @classmethod
    def _normalize_completed(cls, value: Any) -> bool:
        if value is None:
            raise ValueError("completed must be a boolean")
        return normalize_completed(value)

    @field_validator("due_date")
    @classmethod
    def _utc_due_date(cls, value: datetime | None) -> datetime | None:
        return _ensure_utc(value)

    @field_validator("title", "priority")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value


def _describe(error: ValidationError) -> str:
    """Render the first pydantic error as ``"<field>: <message>"``."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "is invalid")
    # pydantic prefixes messages raised from validators with "Value error, "
    message = message.removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


def validate_payload(schema: type[SchemaT], data: Any) -> SchemaT:
    """
    Validate an already-decoded JSON document against *schema*.

    Raises:
        ValidationFailed: If *data* is not an object or fails validation.
    """
    if not isinstance(data, dict):
        raise ValidationFailed("Request body must be a JSON object.")
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed(_describe(exc)) from exc


def parse_body(schema: type[SchemaT]) -> SchemaT:
    """Validate the current request's JSON body against *schema*."""
    return validate_payload(schema, request.get_json(silent=True))
