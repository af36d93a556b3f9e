"""Todo router: CRUD, completion, recurrence settings and stats."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from todo_api.db.config import get_session
from todo_api.middleware.auth import CurrentUser, get_current_user
from todo_api.schemas.task import (
    RecurrenceRemovedResponse,
    RecurrenceUpdate,
    TaskCreate,
    TaskResponse,
    TaskStats,
    TaskUpdate,
    TaskUpdateResponse,
)
from todo_api.services.task_service import (
    TaskNotFoundError,
    TaskPermissionError,
    TaskService,
    TaskValidationError,
)

router = APIRouter(prefix="/todos", tags=["Todos"])


def get_task_service(session: Session = Depends(get_session)) -> TaskService:
    """Dependency for getting TaskService instance."""
    return TaskService(session)


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Todo not found"
    )


def _bad_request(e: TaskValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(e)
    )


@router.get("", response_model=List[TaskResponse])
async def list_todos(
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    category: Optional[str] = Query(None, description="Filter by category, or 'all'"),
    completed: Optional[bool] = Query(None, description="Filter by completion state"),
    priority: Optional[str] = Query(None, description="Filter by priority, or 'all'"),
):
    """List the authenticated user's todos, newest first."""
    return service.list_tasks(current_user.user_id, category=category, completed=completed, priority=priority)


@router.get("/stats", response_model=TaskStats)
async def todo_stats(
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Counts of todos by state, due window and category."""
    return service.get_stats(current_user.user_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(
    task_data: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Create a todo, optionally on a shared list and with recurrence."""
    try:
        return service.create_task(current_user.user_id, task_data)
    except TaskValidationError as e:
        raise _bad_request(e)
    except TaskPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_todo(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Get a specific todo by ID."""
    try:
        return service.get_task(task_id, current_user.user_id)
    except TaskNotFoundError:
        raise _not_found()


@router.put("/{task_id}", response_model=TaskUpdateResponse)
async def update_todo(
    task_id: int,
    task_data: TaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """
    Partially update a todo.

    Completing a recurring todo also creates its next instance; if that
    fails the update still succeeds and the failure is listed in warnings.
    """
    if not task_data.model_fields_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided"
        )
    try:
        result = service.update_task(task_id, current_user.user_id, task_data)
    except TaskNotFoundError:
        raise _not_found()
    except TaskValidationError as e:
        raise _bad_request(e)

    return TaskUpdateResponse(
        todo=TaskResponse.model_validate(result.task),
        next_instance=TaskResponse.model_validate(result.next_instance) if result.next_instance else None,
        warnings=result.warnings,
    )


@router.delete("/{task_id}")
async def delete_todo(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Delete a todo."""
    try:
        service.delete_task(task_id, current_user.user_id)
    except TaskNotFoundError:
        raise _not_found()
    return {"message": "Todo deleted successfully"}


@router.put("/{task_id}/recurrence", response_model=TaskResponse)
async def set_recurrence(
    task_id: int,
    body: RecurrenceUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Merge recurrence settings into the todo and recompute its next due date."""
    try:
        return service.set_recurrence(task_id, current_user.user_id, body.recurrence)
    except TaskNotFoundError:
        raise _not_found()
    except TaskValidationError as e:
        raise _bad_request(e)


@router.delete("/{task_id}/recurrence", response_model=RecurrenceRemovedResponse)
async def remove_recurrence(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Disable recurrence; the pattern and history are kept."""
    try:
        task = service.remove_recurrence(task_id, current_user.user_id)
    except TaskNotFoundError:
        raise _not_found()
    return {"message": "Recurrence disabled", "todo": TaskResponse.model_validate(task)}
