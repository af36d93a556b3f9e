"""Per-IP request rate limits for the API and the auth endpoints."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from todo_api.config import get_settings

logger = logging.getLogger(__name__)

API_LIMIT = "100 per 15 minutes"
AUTH_LIMIT = "5 per 15 minutes"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[API_LIMIT],
    enabled=get_settings().rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render 429 with the same shape for every limited route."""
    logger.warning(
        "Rate limit exceeded: %s %s from %s (%s)",
        request.method, request.url.path, get_remote_address(request), exc.detail,
    )
    if request.url.path.startswith("/auth"):
        content = {
            "error": "Too many authentication attempts",
            "message": "Too many login or registration attempts. Please try again later.",
        }
    else:
        content = {
            "error": "Too many requests",
            "message": "You have exceeded the rate limit. Please try again later.",
        }
    return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=content)


def add_rate_limiting(app: FastAPI):
    """Attach the limiter, its 429 handler and the default per-IP limit."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
