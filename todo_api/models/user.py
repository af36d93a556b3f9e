"""User model for SQLModel."""
import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """Account owning todos and shared lists; emails are stored lowercased."""

    id: str = Field(default_factory=_new_user_id, primary_key=True, index=True)
    username: str = Field(unique=True, index=True, max_length=20)
    email: str = Field(unique=True, index=True, max_length=255)
    # bcrypt hash, never the password itself
    hashed_password: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
