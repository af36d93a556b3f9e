"""Routers for the Recurring Todo API."""

from .analytics import router as analytics_router
from .auth import router as auth_router
from .recurrence import router as recurrence_router
from .shared_lists import router as shared_lists_router
from .tasks import router as tasks_router

__all__ = ["analytics_router", "auth_router", "recurrence_router", "shared_lists_router", "tasks_router"]
