from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import NotFoundError, ValidationError
from .models import Category, Priority, TodoEntity
from .schemas import FIELD_MESSAGES, TodoCreate, TodoPatch, violations_from_error

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

SEED_TODOS: List[Dict[str, Any]] = [
    {"title": "Learn Node.js", "category": "learning", "priority": "high"},
    {"title": "Build a todo app", "category": "project", "priority": "medium"},
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# PUBLIC_INTERFACE
class TodoCollectionService:
    """
    Owns the ordered collection of todos and enforces validation and query semantics.

    A single re-entrant lock guards the whole collection, so every operation is atomic
    with respect to the others. Records handed out are copies; mutating them does not
    touch stored state.
    """

    def __init__(self, clock: Optional[Clock] = None, id_factory: Optional[IdFactory] = None) -> None:
        self._lock = RLock()
        # dicts keep insertion order; ids map to records
        self._items: Dict[str, TodoEntity] = {}
        self._clock: Clock = clock or utc_now
        self._id_factory: IdFactory = id_factory or new_id

    def _allocate_id(self) -> str:
        with self._lock:
            todo_id = self._id_factory()
            while todo_id in self._items:
                todo_id = self._id_factory()
            return todo_id

    def _require(self, todo_id: str) -> TodoEntity:
        item = self._items.get(todo_id)
        if item is None:
            raise NotFoundError(todo_id)
        return item

    def create(self, payload: Mapping[str, Any]) -> TodoEntity:
        """
        Validate payload and append a new todo.

        Raises:
            ValidationError: one violation per failing field, in schema field order.
        """
        try:
            data = TodoCreate.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(violations_from_error(exc)) from None

        with self._lock:
            entity: TodoEntity = {
                "id": self._allocate_id(),
                "title": data.title,
                "completed": data.completed,
                "category": data.category,
                "priority": data.priority,
                "created_at": self._clock(),
                "updated_at": None,
            }
            self._items[entity["id"]] = entity
        logger.info(
            "Created todo id=%s category=%s priority=%s",
            entity["id"],
            entity["category"].value,
            entity["priority"].value,
        )
        return entity.copy()

    def list(self) -> List[TodoEntity]:
        """Return all todos in insertion order."""
        with self._lock:
            return [t.copy() for t in self._items.values()]

    def get(self, todo_id: str) -> TodoEntity:
        """Return the todo with the given id or raise NotFoundError."""
        with self._lock:
            return self._require(todo_id).copy()

    def list_by_category(self, category: str) -> List[TodoEntity]:
        """Return todos in the given category, insertion order. Unknown category -> ValidationError."""
        wanted = _parse_member(Category, category, "category")
        with self._lock:
            return [t.copy() for t in self._items.values() if t["category"] == wanted]

    def list_by_priority(self, priority: str) -> List[TodoEntity]:
        """Return todos with the given priority, insertion order. Unknown priority -> ValidationError."""
        wanted = _parse_member(Priority, priority, "priority")
        with self._lock:
            return [t.copy() for t in self._items.values() if t["priority"] == wanted]

    def stats(self) -> Dict[str, Any]:
        """
        Aggregate counts, recomputed on every call.

        Every category and priority appears in the breakdowns, zero-filled.
        """
        with self._lock:
            items = list(self._items.values())
        completed = sum(1 for t in items if t["completed"])
        by_category = {c.value: 0 for c in Category}
        by_priority = {p.value: 0 for p in Priority}
        for t in items:
            by_category[t["category"].value] += 1
            by_priority[t["priority"].value] += 1
        return {
            "total": len(items),
            "completed": completed,
            "pending": len(items) - completed,
            "by_category": by_category,
            "by_priority": by_priority,
        }

    def update(self, todo_id: str, patch: Mapping[str, Any]) -> TodoEntity:
        """
        Apply the fields present in patch (title, completed) and stamp updated_at.

        updated_at is refreshed even when the patch changes nothing. The title is
        trimmed but, unlike on create, not HTML-escaped.
        """
        with self._lock:
            existing = self._require(todo_id)
            try:
                data = TodoPatch.model_validate(patch)
            except PydanticValidationError as exc:
                raise ValidationError(violations_from_error(exc, messages={})) from None

            updated = existing.copy()
            if "title" in data.model_fields_set:
                updated["title"] = data.title  # type: ignore[typeddict-item]
            if "completed" in data.model_fields_set:
                updated["completed"] = bool(data.completed)
            updated["updated_at"] = self._clock()

            self._items[todo_id] = updated
        logger.info("Updated todo id=%s fields=%s", todo_id, sorted(data.model_fields_set))
        return updated.copy()

    def delete(self, todo_id: str) -> TodoEntity:
        """Remove the todo permanently and return its last state."""
        with self._lock:
            self._require(todo_id)
            removed = self._items.pop(todo_id)
        logger.info("Deleted todo id=%s", todo_id)
        return removed

    def seed(self, records: Iterable[Mapping[str, Any]]) -> List[TodoEntity]:
        """Create each record in order. Records go through the same validation as create."""
        return [self.create(record) for record in records]

    def reset(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def _parse_member(enum_cls, value: str, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError.single(field, FIELD_MESSAGES[field], value) from None


# PUBLIC_INTERFACE
def build_service(seed: bool = True, **kwargs: Any) -> TodoCollectionService:
    """Construct a service, optionally loaded with the startup seed records."""
    service = TodoCollectionService(**kwargs)
    if seed:
        service.seed(SEED_TODOS)
    return service
