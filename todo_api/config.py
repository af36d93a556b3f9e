"""Application settings loaded from the environment."""
from functools import lru_cache
from typing import List, Optional
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

# Load environment variables from a local .env if present
load_dotenv()

DEV_JWT_SECRET = "dev-only-secret-change-me-0123456789abcdef"


class ConfigError(RuntimeError):
    """Raised when the environment does not describe a usable configuration."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Environment validation failed:\n" + "\n".join(errors))


class Settings(BaseModel):
    """Validated runtime configuration."""

    environment: str = Field(default="development", pattern=r"^(development|production|test)$")
    database_url: str = "sqlite:///./todo_app.db"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = Field(default=7, ge=1)
    frontend_url: str = "http://localhost:5173"
    sweep_api_key: Optional[str] = None
    log_level: str = "INFO"
    rate_limit_enabled: bool = True

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def load_settings(environ: Optional[dict] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated Settings

    Raises:
        ConfigError: If any variable is invalid, listing every problem
    """
    env = os.environ if environ is None else environ

    values = {
        "environment": env.get("ENVIRONMENT", "development"),
        "database_url": env.get("DATABASE_URL", "sqlite:///./todo_app.db"),
        "frontend_url": env.get("FRONTEND_URL", "http://localhost:5173"),
        "sweep_api_key": env.get("SWEEP_API_KEY") or None,
        "log_level": env.get("LOG_LEVEL", "INFO"),
        # Disabled by default when ENVIRONMENT=test
        "rate_limit_enabled": env.get("RATE_LIMIT_ENABLED", "false" if env.get("ENVIRONMENT") == "test" else "true"),
    }
    if env.get("JWT_SECRET"):
        values["jwt_secret"] = env["JWT_SECRET"]
    elif values["environment"] == "production":
        raise ConfigError(["JWT_SECRET is required in production."])
    if env.get("JWT_EXPIRE_DAYS"):
        values["jwt_expire_days"] = env["JWT_EXPIRE_DAYS"]

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError([
            f"{'.'.join(str(part) for part in error['loc']).upper()}: {error['msg']}"
            for error in e.errors()
        ]) from e


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return load_settings()


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
