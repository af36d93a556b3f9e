"""Operator endpoint that runs the recurrence backfill sweep."""
import secrets
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlmodel import Session

from todo_api.config import get_settings
from todo_api.db.config import get_session
from todo_api.services.recurring_task_service import RecurringTaskService

router = APIRouter(prefix="/recurrence", tags=["Recurrence"])


def verify_sweep_key(x_sweep_key: Optional[str] = Header(None)) -> None:
    """Reject callers without the configured sweep key; disabled when no key is set."""
    expected = get_settings().sweep_api_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sweep endpoint is disabled"
        )
    if not x_sweep_key or not secrets.compare_digest(x_sweep_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sweep key"
        )


@router.post("/sweep", response_model=Dict[str, Any], dependencies=[Depends(verify_sweep_key)])
async def run_recurrence_sweep(session: Session = Depends(get_session)):
    """Materialize every overdue recurring instance and report the outcome."""
    return RecurringTaskService(session).process_overdue_recurrences().to_dict()
