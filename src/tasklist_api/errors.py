"""Domain errors raised by the todo collection service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence


@dataclass(frozen=True)
class FieldViolation:
    """A single failing field: its name, a human readable message, and the rejected value."""

    field: str
    message: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "message": self.message, "value": self.value}


class TodoServiceError(Exception):
    """Base class for errors raised by the todo service."""


class ValidationError(TodoServiceError):
    """Input failed validation. Carries one violation per failing field, in field order."""

    def __init__(self, violations: Sequence[FieldViolation]) -> None:
        self.violations: List[FieldViolation] = list(violations)
        super().__init__(self.message)

    @classmethod
    def single(cls, field: str, message: str, value: Any = None) -> "ValidationError":
        return cls([FieldViolation(field=field, message=message, value=value)])

    @property
    def message(self) -> str:
        if not self.violations:
            return "Validation failed"
        return self.violations[0].message

    def to_list(self) -> List[Dict[str, Any]]:
        return [v.to_dict() for v in self.violations]


class NotFoundError(TodoServiceError):
    """No todo exists with the given id."""

    def __init__(self, todo_id: str) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo not found: {todo_id}")
