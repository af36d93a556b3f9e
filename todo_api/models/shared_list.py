"""Shared list models for SQLModel."""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlmodel import Field, SQLModel

ROLES = ("owner", "editor", "viewer")


class SharedList(SQLModel, table=True):
    """A named list whose todos are visible to all of its members."""

    __tablename__ = "shared_list"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, min_length=1)
    owner_id: str = Field(
        sa_column=Column(String, ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class SharedListMember(SQLModel, table=True):
    """Membership of a user in a shared list."""

    __tablename__ = "shared_list_member"
    __table_args__ = (UniqueConstraint("list_id", "user_id", name="uq_shared_list_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(
        sa_column=Column(Integer, ForeignKey("shared_list.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    user_id: str = Field(
        sa_column=Column(String, ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    role: str = Field(default="editor", max_length=10)
    added_at: datetime = Field(default_factory=datetime.utcnow)


class SharedListInvite(SQLModel, table=True):
    """Invitation for an email address that has no account yet."""

    __tablename__ = "shared_list_invite"
    __table_args__ = (UniqueConstraint("list_id", "email", name="uq_shared_list_invite"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(
        sa_column=Column(Integer, ForeignKey("shared_list.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    email: str = Field(max_length=255, index=True)
    role: str = Field(default="editor", max_length=10)
    invited_by: str = Field(
        sa_column=Column(String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    )
    invited_at: datetime = Field(default_factory=datetime.utcnow)
