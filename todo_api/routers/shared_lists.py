"""Shared list router."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from todo_api.db.config import get_session
from todo_api.middleware.auth import CurrentUser, get_current_user
from todo_api.schemas.shared_list import InviteRequest, SharedListCreate, SharedListResponse
from todo_api.schemas.task import TaskResponse
from todo_api.services.shared_list_service import (
    SharedListAccessError,
    SharedListConflictError,
    SharedListNotFoundError,
    SharedListService,
)

router = APIRouter(prefix="/shared-lists", tags=["Shared Lists"])


def get_shared_list_service(session: Session = Depends(get_session)) -> SharedListService:
    """Dependency for getting SharedListService instance."""
    return SharedListService(session)


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, SharedListNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shared list not found")
    if isinstance(e, SharedListAccessError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


LIST_ERRORS = (SharedListNotFoundError, SharedListAccessError, SharedListConflictError)


@router.get("", response_model=List[SharedListResponse])
async def list_shared_lists(
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """All shared lists the user belongs to."""
    return [service.to_dict(shared_list) for shared_list in service.list_for_user(current_user.user_id)]


@router.post("", response_model=SharedListResponse, status_code=status.HTTP_201_CREATED)
async def create_shared_list(
    body: SharedListCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """Create a shared list owned by the user."""
    return service.to_dict(service.create(current_user.user_id, body.name))


@router.get("/{list_id}", response_model=SharedListResponse)
async def get_shared_list(
    list_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """Get a shared list the user is a member of."""
    try:
        return service.to_dict(service.get_for_member(list_id, current_user.user_id))
    except LIST_ERRORS as e:
        raise _to_http(e)


@router.post("/{list_id}/invite", response_model=SharedListResponse)
async def invite_member(
    list_id: int,
    body: InviteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """Invite a user by email (owner only)."""
    try:
        return service.to_dict(service.invite(list_id, current_user.user_id, body.email, body.role))
    except LIST_ERRORS as e:
        raise _to_http(e)


@router.delete("/{list_id}/members/{user_id}", response_model=SharedListResponse)
async def remove_member(
    list_id: int,
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """Remove a member; members may also remove themselves."""
    try:
        return service.to_dict(service.remove_member(list_id, current_user.user_id, user_id))
    except LIST_ERRORS as e:
        raise _to_http(e)


@router.delete("/{list_id}")
async def delete_shared_list(
    list_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
):
    """Delete a shared list and all of its todos (owner only)."""
    try:
        service.delete(list_id, current_user.user_id)
    except LIST_ERRORS as e:
        raise _to_http(e)
    return {"message": "Shared list and associated todos deleted successfully"}


@router.get("/{list_id}/todos", response_model=List[TaskResponse])
async def list_shared_todos(
    list_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: SharedListService = Depends(get_shared_list_service),
    category: Optional[str] = Query(None),
    completed: Optional[bool] = Query(None),
    priority: Optional[str] = Query(None),
):
    """Todos on a shared list."""
    try:
        return service.list_todos(
            list_id, current_user.user_id, category=category, completed=completed, priority=priority
        )
    except LIST_ERRORS as e:
        raise _to_http(e)
