"""CORS configuration for the browser client."""
import logging

from fastapi.middleware.cors import CORSMiddleware

from todo_api.config import get_settings

logger = logging.getLogger(__name__)

# Base allowed origins for development
DEV_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
]


def allowed_origins() -> list:
    settings = get_settings()
    if settings.is_production:
        return [settings.frontend_url]
    origins = list(DEV_ORIGINS)
    if settings.frontend_url not in origins:
        origins.append(settings.frontend_url)
    return origins


def add_cors_middleware(app):
    """Add CORS middleware to the FastAPI application."""
    origins = allowed_origins()
    logger.info("CORS allowed origins: %s", origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
