"""Database configuration for the Recurring Todo API."""
import logging
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from todo_api.config import get_settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """
    Create a SQLModel engine for the given URL.

    SQLite connections get foreign keys enabled so cascades and
    ON DELETE SET NULL behave as they do on PostgreSQL.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


settings = get_settings()

if settings.is_sqlite:
    logger.info("Using SQLite database: %s", settings.database_url)
else:
    logger.info("Using PostgreSQL database")

engine = create_db_engine(settings.database_url)


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
