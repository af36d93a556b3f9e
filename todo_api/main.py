"""Main FastAPI application for the Recurring Todo API."""
import logging

from fastapi import FastAPI

from todo_api import __version__
from todo_api.config import get_settings
from todo_api.db.init import init_db
from todo_api.middleware.cors import add_cors_middleware
from todo_api.middleware.errors import add_exception_handlers
from todo_api.middleware.rate_limit import add_rate_limiting, limiter
from todo_api.routers import (
    analytics_router,
    auth_router,
    recurrence_router,
    shared_lists_router,
    tasks_router,
)
from todo_api.utils.logger import configure_logging
from todo_api.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application with middleware, handlers and routers."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Recurring Todo API",
        description="Todos with subtasks, recurrence, shared lists and analytics",
        version=__version__,
    )

    add_cors_middleware(app)
    add_exception_handlers(app)
    add_rate_limiting(app)

    @app.on_event("startup")
    async def startup_event():
        """Initialize database on startup."""
        init_db()
        logger.info("Application startup complete (environment=%s)", settings.environment)

    @app.get("/health")
    @limiter.exempt
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/metrics")
    @limiter.exempt
    async def metrics():
        """Recurrence engine counters and timers."""
        return metrics_collector.get_metrics()

    app.include_router(auth_router, prefix="/auth")  # /auth/register, /auth/login, /auth/me
    app.include_router(tasks_router, prefix="/api")  # /api/todos
    app.include_router(shared_lists_router, prefix="/api")  # /api/shared-lists
    app.include_router(analytics_router, prefix="/api")  # /api/analytics
    app.include_router(recurrence_router, prefix="/api")  # /api/recurrence/sweep

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "todo_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
