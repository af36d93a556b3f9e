"""Analytics router."""
from typing import Any, Dict

import pytz
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from todo_api.db.config import get_session
from todo_api.middleware.auth import CurrentUser, get_current_user
from todo_api.services.analytics_service import AnalyticsService, parse_days

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("", response_model=Dict[str, Any])
async def get_analytics(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    days: str = Query("30", description="Trend window in days, or 'all'"),
    tz: str = Query("UTC", description="IANA timezone for day and hour buckets"),
):
    """Summary, trends, breakdowns, streaks and achievements."""
    try:
        day_count = parse_days(days)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="days must be a positive integer or 'all'"
        )
    try:
        return AnalyticsService(session).compute(current_user.user_id, days=day_count, tz_name=tz)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {tz}"
        )
