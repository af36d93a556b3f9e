import pytest

from todo_api.config import DEV_JWT_SECRET, ConfigError, load_settings

SECRET = "x" * 40


def test_defaults_for_development():
    settings = load_settings({})
    assert settings.environment == "development"
    assert settings.jwt_secret == DEV_JWT_SECRET
    assert settings.jwt_expire_days == 7
    assert settings.is_sqlite is True
    assert settings.is_production is False
    assert settings.sweep_api_key is None


def test_reads_environment_values():
    settings = load_settings({
        "ENVIRONMENT": "production",
        "DATABASE_URL": "postgresql://todo:todo@db/todo",
        "JWT_SECRET": SECRET,
        "JWT_EXPIRE_DAYS": "3",
        "SWEEP_API_KEY": "sweep",
        "LOG_LEVEL": "debug",
    })
    assert settings.is_production is True
    assert settings.is_sqlite is False
    assert settings.jwt_expire_days == 3
    assert settings.sweep_api_key == "sweep"
    assert settings.log_level == "DEBUG"


def test_production_requires_jwt_secret():
    with pytest.raises(ConfigError) as exc_info:
        load_settings({"ENVIRONMENT": "production"})
    assert exc_info.value.errors == ["JWT_SECRET is required in production."]


def test_invalid_values_are_all_reported():
    with pytest.raises(ConfigError) as exc_info:
        load_settings({"ENVIRONMENT": "staging", "JWT_SECRET": "short", "LOG_LEVEL": "loud"})
    fields = " ".join(exc_info.value.errors)
    assert "ENVIRONMENT" in fields
    assert "JWT_SECRET" in fields
    assert "LOG_LEVEL" in fields


def test_rate_limiting_defaults_by_environment():
    assert load_settings({}).rate_limit_enabled is True
    assert load_settings({"ENVIRONMENT": "test"}).rate_limit_enabled is False
    assert load_settings({"ENVIRONMENT": "test", "RATE_LIMIT_ENABLED": "true"}).rate_limit_enabled is True
