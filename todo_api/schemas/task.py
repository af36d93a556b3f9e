"""Task schemas for the Recurring Todo API."""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal["work", "personal", "health", "learning", "urgent", "general"]
Priority = Literal["low", "medium", "high", "urgent"]
Pattern = Literal["daily", "weekly", "monthly", "yearly"]


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store every timestamp as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SubtaskIn(BaseModel):
    """Subtask as sent by clients."""
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=200)
    completed: bool = False


class RecurrenceIn(BaseModel):
    """Recurrence settings; every field is optional so updates can be partial."""

    enabled: Optional[bool] = None
    pattern: Optional[Pattern] = None
    interval: Optional[int] = Field(None, ge=1, le=365)
    days_of_week: Optional[List[int]] = None
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    end_date: Optional[datetime] = None

    @field_validator("days_of_week")
    @classmethod
    def check_days_of_week(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("days_of_week entries must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(value))

    @field_validator("end_date")
    @classmethod
    def normalize_end_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class TaskCreate(BaseModel):
    """Schema for creating a todo."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: Category = "general"
    priority: Priority = "medium"
    due_date: Optional[datetime] = None
    subtasks: List[SubtaskIn] = Field(default_factory=list, max_length=50)
    shared_list_id: Optional[int] = None
    recurrence: Optional[RecurrenceIn] = None

    @field_validator("due_date")
    @classmethod
    def due_date_not_in_past(cls, value: Optional[datetime]) -> Optional[datetime]:
        value = to_naive_utc(value)
        if value is not None and value < datetime.utcnow():
            raise ValueError("Due date cannot be in the past")
        return value


class TaskUpdate(BaseModel):
    """Schema for partially updating a todo; only fields that are sent change."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None
    subtasks: Optional[List[SubtaskIn]] = Field(None, max_length=50)
    recurrence: Optional[RecurrenceIn] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class RecurrenceUpdate(BaseModel):
    """Body of the recurrence set/update endpoint."""
    recurrence: RecurrenceIn


class SubtaskResponse(BaseModel):
    text: str
    completed: bool
    created_at: Optional[datetime] = None


class RecurrenceResponse(BaseModel):
    enabled: bool
    pattern: Optional[str] = None
    interval: int = 1
    days_of_week: List[int] = []
    day_of_month: Optional[int] = None
    end_date: Optional[datetime] = None
    last_created: Optional[datetime] = None
    next_due: Optional[datetime] = None


class TaskResponse(BaseModel):
    """Schema for todo API responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    shared_list_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    category: str
    priority: str
    completed: bool
    completed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    subtasks: List[SubtaskResponse] = []
    recurrence: Optional[RecurrenceResponse] = None
    is_recurring_instance: bool = False
    recurring_parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class TaskUpdateResponse(BaseModel):
    """Updated todo plus the instance spawned by completing it, if any."""
    todo: TaskResponse
    next_instance: Optional[TaskResponse] = None
    warnings: List[str] = []


class RecurrenceRemovedResponse(BaseModel):
    message: str
    todo: TaskResponse


class TaskStats(BaseModel):
    total: int
    completed: int
    pending: int
    overdue: int
    due_today: int
    completion_rate: int
    by_category: dict
