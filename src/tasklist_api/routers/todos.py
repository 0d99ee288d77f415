from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from ..errors import ValidationError
from ..models import Category, Priority, TodoEntity
from ..schemas import (
    CategoryListEnvelope,
    ErrorEnvelope,
    PriorityListEnvelope,
    StatsEnvelope,
    StatsOut,
    TodoEnvelope,
    TodoListEnvelope,
    TodoOut,
)
from ..service import TodoCollectionService

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_NOT_FOUND = {"model": ErrorEnvelope, "description": "Todo not found"}


# PUBLIC_INTERFACE
def get_service(request: Request) -> TodoCollectionService:
    """
    Dependency returning the service instance owned by the running application.
    """
    return request.app.state.todo_service


def _out(items: List[TodoEntity]) -> List[TodoOut]:
    return [TodoOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    response_model_exclude_none=True,
    summary="List Todos",
    description="List every todo in insertion order, with the total count.",
)
@router.get("/", response_model=TodoListEnvelope, response_model_exclude_none=True, include_in_schema=False)
def list_todos(service: TodoCollectionService = Depends(get_service)) -> TodoListEnvelope:
    """
    List all todos.
    """
    items = service.list()
    return TodoListEnvelope(message="Successfully fetched todos", count=len(items), todos=_out(items))


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=StatsEnvelope,
    summary="Todo Statistics",
    description=(
        "Total, completed and pending counts, plus a count for every category and every "
        "priority (zero when unused)."
    ),
)
def get_stats(service: TodoCollectionService = Depends(get_service)) -> StatsEnvelope:
    """
    Aggregate statistics, recomputed on every request.
    """
    return StatsEnvelope(message="Successfully fetched todo statistics", stats=StatsOut(**service.stats()))


# PUBLIC_INTERFACE
@router.get(
    "/category/{category}",
    response_model=CategoryListEnvelope,
    response_model_exclude_none=True,
    summary="List Todos by Category",
    responses={400: {"model": ErrorEnvelope, "description": "Invalid category"}},
)
def list_by_category(category: str, service: TodoCollectionService = Depends(get_service)) -> CategoryListEnvelope:
    """
    List todos in one category. Unknown categories answer 400 with the valid set.
    """
    try:
        items = service.list_by_category(category)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid category", "availableCategories": Category.values()},
        ) from exc
    return CategoryListEnvelope(
        message=f"Successfully fetched todos for category: {category}",
        count=len(items),
        category=Category(category),
        todos=_out(items),
    )


# PUBLIC_INTERFACE
@router.get(
    "/priority/{priority}",
    response_model=PriorityListEnvelope,
    response_model_exclude_none=True,
    summary="List Todos by Priority",
    responses={400: {"model": ErrorEnvelope, "description": "Invalid priority"}},
)
def list_by_priority(priority: str, service: TodoCollectionService = Depends(get_service)) -> PriorityListEnvelope:
    """
    List todos with one priority. Unknown priorities answer 400 with the valid set.
    """
    try:
        items = service.list_by_priority(priority)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid priority", "availablePriorities": Priority.values()},
        ) from exc
    return PriorityListEnvelope(
        message=f"Successfully fetched todos for priority: {priority}",
        count=len(items),
        priority=Priority(priority),
        todos=_out(items),
    )


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoEnvelope,
    response_model_exclude_none=True,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={404: _NOT_FOUND},
)
def get_todo(todo_id: str, service: TodoCollectionService = Depends(get_service)) -> TodoEnvelope:
    """
    Retrieve a single Todo item by its ID.
    """
    return TodoEnvelope(message="Successfully fetched todo", todo=TodoOut(**service.get(todo_id)))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a new Todo item. title is required (1..200 characters after trimming); "
        "completed, category and priority are optional."
    ),
    responses={422: {"model": ErrorEnvelope, "description": "Validation failed"}},
)
@router.post(
    "/",
    response_model=TodoEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
def create_todo(
    payload: Dict[str, Any] = Body(
        ...,
        examples=[{"title": "Buy groceries", "category": "personal", "priority": "high"}],
    ),
    service: TodoCollectionService = Depends(get_service),
) -> TodoEnvelope:
    """
    Create a new Todo. Validation failures surface as 422 through the app's handler.
    """
    created = service.create(payload)
    return TodoEnvelope(message="Todo successfully created", todo=TodoOut(**created))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoEnvelope,
    response_model_exclude_none=True,
    summary="Update Todo",
    description=(
        "Update title and/or completed of an existing Todo. Omitted fields are left unchanged; "
        "updatedAt is refreshed on every successful call."
    ),
    responses={
        400: {"model": ErrorEnvelope, "description": "Title cannot be empty"},
        404: _NOT_FOUND,
    },
)
def update_todo(
    todo_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None, examples=[{"completed": True}]),
    service: TodoCollectionService = Depends(get_service),
) -> TodoEnvelope:
    """
    Partial update of a Todo item.
    """
    try:
        updated = service.update(todo_id, payload or {})
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": exc.message, "errors": exc.to_list()},
        ) from exc
    return TodoEnvelope(message="Todo successfully updated", todo=TodoOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=TodoEnvelope,
    response_model_exclude_none=True,
    summary="Delete Todo",
    description="Delete a Todo item by ID and return the removed record.",
    responses={404: _NOT_FOUND},
)
def delete_todo(todo_id: str, service: TodoCollectionService = Depends(get_service)) -> TodoEnvelope:
    """
    Delete a Todo permanently.
    """
    removed = service.delete(todo_id)
    return TodoEnvelope(message="Todo successfully deleted", todo=TodoOut(**removed))
