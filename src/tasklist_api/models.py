from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, TypedDict


# PUBLIC_INTERFACE
class Category(str, Enum):
    """Closed set of todo categories. Declaration order is the canonical order."""

    PERSONAL = "personal"
    WORK = "work"
    LEARNING = "learning"
    PROJECT = "project"
    HEALTH = "health"
    OTHER = "other"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Closed set of todo priorities, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Stored shape of a Todo item.

    Fields:
    - id: Opaque unique identifier (uuid4 string by default)
    - title: Trimmed title, 1..200 chars at creation, HTML-escaped at creation
    - completed: Boolean completion flag
    - category: Category member
    - priority: Priority member
    - created_at: UTC creation timestamp
    - updated_at: UTC timestamp of the last update, None until the first update
    """

    id: str
    title: str
    completed: bool
    category: Category
    priority: Priority
    created_at: datetime
    updated_at: Optional[datetime]
