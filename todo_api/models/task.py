"""Task model for SQLModel."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint, event, inspect
from sqlalchemy.orm import Session
from sqlmodel import Field, SQLModel

CATEGORIES = ("work", "personal", "health", "learning", "urgent", "general")
PRIORITIES = ("low", "medium", "high", "urgent")
RECURRENCE_PATTERNS = ("daily", "weekly", "monthly", "yearly")


class Task(SQLModel, table=True):
    """Task entity with embedded recurrence configuration and instance lineage."""

    # One generated instance per parent and occurrence
    __table_args__ = (
        UniqueConstraint("recurring_parent_id", "due_date", name="uq_task_recurring_parent_due"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(
        sa_column=Column(String, ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    shared_list_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("shared_list.id", ondelete="CASCADE"), index=True, nullable=True),
    )

    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: str = Field(default="general", max_length=20)
    priority: str = Field(default="medium", max_length=20)

    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)
    due_date: Optional[datetime] = Field(default=None, index=True)
    subtasks: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Recurrence, stored flat so the sweep can filter on it
    recurrence_enabled: bool = Field(default=False, index=True)
    recurrence_pattern: Optional[str] = Field(default=None, max_length=20)
    recurrence_interval: int = Field(default=1)
    recurrence_days_of_week: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))
    recurrence_day_of_month: Optional[int] = Field(default=None)
    recurrence_end_date: Optional[datetime] = Field(default=None)
    recurrence_last_created: Optional[datetime] = Field(default=None)
    recurrence_next_due: Optional[datetime] = Field(default=None, index=True)

    # Lineage
    is_recurring_instance: bool = Field(default=False)
    recurring_parent_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("task.id", ondelete="SET NULL"), index=True, nullable=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def recurrence(self) -> Optional[Dict[str, Any]]:
        """Nested recurrence view used by API responses."""
        if self.recurrence_pattern is None and not self.recurrence_enabled:
            return None
        return {
            "enabled": self.recurrence_enabled,
            "pattern": self.recurrence_pattern,
            "interval": self.recurrence_interval,
            "days_of_week": list(self.recurrence_days_of_week or []),
            "day_of_month": self.recurrence_day_of_month,
            "end_date": self.recurrence_end_date,
            "last_created": self.recurrence_last_created,
            "next_due": self.recurrence_next_due,
        }

    @property
    def is_recurring_root(self) -> bool:
        return self.recurrence_enabled and not self.is_recurring_instance


@event.listens_for(Session, "before_flush")
def _maintain_task_timestamps(session, flush_context, instances):
    """Keep completed_at in step with completed and bump updated_at on change."""
    now = datetime.utcnow()

    for obj in session.new:
        if isinstance(obj, Task):
            if not obj.completed:
                obj.completed_at = None
            elif obj.completed_at is None:
                obj.completed_at = now

    for obj in session.dirty:
        if not isinstance(obj, Task) or not session.is_modified(obj):
            continue
        if inspect(obj).attrs.completed.history.has_changes():
            obj.completed_at = now if obj.completed else None
        obj.updated_at = now
