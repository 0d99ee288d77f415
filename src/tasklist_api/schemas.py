from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import FieldViolation
from .models import Category, Priority

TITLE_MAX_LENGTH = 200

# Markup-significant characters and their HTML entities.
# Single-pass substitution: '&' inside an inserted entity is never re-escaped.
TITLE_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        '"': "&quot;",
        "'": "&#x27;",
        "<": "&lt;",
        ">": "&gt;",
        "/": "&#x2F;",
        "\\": "&#x5C;",
        "`": "&#96;",
    }
)

# The only inputs accepted as booleans for 'completed' on create.
BOOLEAN_INPUTS: Dict[str, bool] = {"true": True, "false": False, "1": True, "0": False}

TITLE_LENGTH_MESSAGE = f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
TITLE_EMPTY_MESSAGE = "Title cannot be empty"
BODY_MESSAGE = "Request body must be a JSON object"

# One canonical message per input field, used whatever the underlying failure was
# (missing, wrong type, out of range).
FIELD_MESSAGES: Dict[str, str] = {
    "title": TITLE_LENGTH_MESSAGE,
    "completed": "Completed must be a boolean value",
    "category": f"Category must be one of: {', '.join(Category.values())}",
    "priority": f"Priority must be one of: {', '.join(Priority.values())}",
}


def violations_from_error(
    exc: PydanticValidationError, messages: Optional[Dict[str, str]] = None
) -> List[FieldViolation]:
    """
    Collapse a pydantic ValidationError into one FieldViolation per failing field.

    Violations keep the order pydantic reports them in, which is the schema's field order.
    Errors not attached to a field (e.g. the payload is not an object) are reported on 'body'.
    """
    lookup = FIELD_MESSAGES if messages is None else messages
    violations: List[FieldViolation] = []
    seen = set()
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "body"
        if field in seen:
            continue
        seen.add(field)
        if field == "body":
            message = BODY_MESSAGE
        else:
            message = lookup.get(field) or _strip_value_error(err.get("msg", ""))
        value = None if err.get("type") == "missing" else err.get("input")
        violations.append(FieldViolation(field=field, message=message, value=value))
    return violations


def _strip_value_error(msg: str) -> str:
    # pydantic prefixes messages of ValueErrors raised in validators
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.

    title is trimmed, length-checked against the trimmed text, then HTML-escaped.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "completed": False,
                "category": "personal",
                "priority": "high",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item (1..200 chars after trimming)")
    completed: bool = Field(default=False, description="Completion status flag")
    category: Category = Field(default=Category.OTHER, description="Category of the todo item")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority of the todo item")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace, enforce 1..200 length, and neutralize markup characters.
        """
        s = v.strip()
        if not (1 <= len(s) <= TITLE_MAX_LENGTH):
            raise ValueError(TITLE_LENGTH_MESSAGE)
        return s.translate(TITLE_ESCAPES)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> bool:
        """
        Accept only true/false, 1/0 and their string forms.
        """
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, str)) and str(v) in BOOLEAN_INPUTS:
            return BOOLEAN_INPUTS[str(v)]
        raise ValueError(FIELD_MESSAGES["completed"])


# PUBLIC_INTERFACE
class TodoPatch(BaseModel):
    """
    Schema for updating an existing Todo item.
    Both fields are optional; only fields present in the payload are applied.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
            }
        }
    )

    title: Optional[str] = Field(default=None, description="New title; must not be empty after trimming")
    completed: Optional[bool] = Field(default=None, description="New completion status; coerced to boolean")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError(TITLE_EMPTY_MESSAGE)
        return v.strip()

    @field_validator("completed", mode="before")
    @classmethod
    def coerce_completed(cls, v: Any) -> bool:
        return bool(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item. Serialized with camelCase keys.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f0e6a2c-5b8e-4d1e-9a57-2f6c1f0b9d11",
                "title": "Buy groceries",
                "completed": False,
                "category": "personal",
                "priority": "high",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-26T09:00:00.000001Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    completed: bool = Field(..., description="Completion status flag")
    category: Category = Field(..., description="Category of the todo item")
    priority: Priority = Field(..., description="Priority of the todo item")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(
        default=None, description="Last update timestamp; omitted until the first update"
    )


# PUBLIC_INTERFACE
class StatsOut(BaseModel):
    """Aggregate counts over the whole collection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(..., description="Number of todos")
    completed: int = Field(..., description="Number of completed todos")
    pending: int = Field(..., description="Number of todos not yet completed")
    by_category: Dict[str, int] = Field(..., description="Count per category, every category present")
    by_priority: Dict[str, int] = Field(..., description="Count per priority, every priority present")


class TodoEnvelope(BaseModel):
    success: bool = True
    message: str
    todo: TodoOut


class TodoListEnvelope(BaseModel):
    success: bool = True
    message: str
    count: int
    todos: List[TodoOut]


class CategoryListEnvelope(TodoListEnvelope):
    category: Category


class PriorityListEnvelope(TodoListEnvelope):
    priority: Priority


class StatsEnvelope(BaseModel):
    success: bool = True
    message: str
    stats: StatsOut


class ErrorEnvelope(BaseModel):
    """Shape of every error response. Only the keys relevant to the error are present."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: Optional[str] = None
    error: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None
