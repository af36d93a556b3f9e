"""Initialize database tables."""
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

# Register every table on SQLModel.metadata
from todo_api.models import SharedList, SharedListInvite, SharedListMember, Task, User  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None):
    """Create all tables in the database."""
    if bind is None:
        from todo_api.db.config import engine as bind

    logger.info("Creating all tables...")
    SQLModel.metadata.create_all(bind)
    logger.info("Tables created successfully.")


if __name__ == "__main__":
    init_db()
