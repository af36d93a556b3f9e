"""Task service for the Recurring Todo API."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from todo_api.models.task import Task
from todo_api.schemas.task import RecurrenceIn, TaskCreate, TaskUpdate
from todo_api.services.recurrence_validator import RecurrenceValidator
from todo_api.services.recurring_task_service import RecurringTaskService
from todo_api.services.shared_list_service import SharedListService

logger = logging.getLogger(__name__)

RECURRENCE_FIELDS = ("enabled", "pattern", "interval", "days_of_week", "day_of_month", "end_date")


class TaskNotFoundError(LookupError):
    """The todo does not exist or is not owned by the user."""


class TaskValidationError(ValueError):
    """The request is well-formed but describes an invalid todo."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(", ".join(errors))


class TaskPermissionError(PermissionError):
    """The user may not write to the requested shared list."""


@dataclass
class TaskUpdateResult:
    task: Task
    next_instance: Optional[Task] = None
    warnings: List[str] = field(default_factory=list)


def _subtasks_from_input(subtasks, now: datetime) -> List[Dict[str, Any]]:
    return [
        {"text": subtask.text, "completed": subtask.completed, "created_at": now.isoformat()}
        for subtask in subtasks
    ]


def _current_recurrence(task: Task) -> Dict[str, Any]:
    return {
        "enabled": task.recurrence_enabled,
        "pattern": task.recurrence_pattern,
        "interval": task.recurrence_interval,
        "days_of_week": task.recurrence_days_of_week,
        "day_of_month": task.recurrence_day_of_month,
        "end_date": task.recurrence_end_date,
    }


def _apply_recurrence(task: Task, recurrence: Dict[str, Any]):
    task.recurrence_enabled = bool(recurrence.get("enabled"))
    task.recurrence_pattern = recurrence.get("pattern")
    task.recurrence_interval = recurrence.get("interval") or 1
    task.recurrence_days_of_week = list(recurrence.get("days_of_week") or [])
    task.recurrence_day_of_month = recurrence.get("day_of_month")
    task.recurrence_end_date = recurrence.get("end_date")


class TaskService:
    """Service class for todo CRUD, completion and recurrence settings."""

    def __init__(self, session: Session):
        self.session = session
        self.recurring = RecurringTaskService(session)

    def _validate_recurrence(self, recurrence: Dict[str, Any]) -> List[str]:
        validation = RecurrenceValidator.validate_recurrence(recurrence)
        if not validation["valid"]:
            raise TaskValidationError(validation["errors"])
        return validation["warnings"]

    def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """Create a new todo owned by the user."""
        if data.shared_list_id is not None:
            lists = SharedListService(self.session)
            if not lists.can_edit(data.shared_list_id, user_id):
                raise TaskPermissionError("Not allowed to add todos to this shared list")

        now = datetime.utcnow()
        task = Task(
            user_id=user_id,
            shared_list_id=data.shared_list_id,
            title=data.title,
            description=data.description or None,
            category=data.category,
            priority=data.priority,
            due_date=data.due_date,
            subtasks=_subtasks_from_input(data.subtasks, now),
        )

        if data.recurrence is not None:
            recurrence = {"enabled": False, "pattern": "daily", "interval": 1}
            recurrence.update(data.recurrence.model_dump(exclude_unset=True, exclude_none=True))
            self._validate_recurrence(recurrence)
            _apply_recurrence(task, recurrence)

        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)

        logger.info("Todo created: user=%s todo=%s", user_id, task.id)
        return task

    def list_tasks(
        self,
        user_id: str,
        category: Optional[str] = None,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
    ) -> List[Task]:
        """Get the user's todos, newest first."""
        statement = select(Task).where(Task.user_id == user_id)

        if category and category != "all":
            statement = statement.where(Task.category == category)
        if completed is not None:
            statement = statement.where(Task.completed == completed)
        if priority and priority != "all":
            statement = statement.where(Task.priority == priority)

        statement = statement.order_by(Task.created_at.desc(), Task.id.desc())
        return list(self.session.exec(statement).all())

    def get_task(self, task_id: int, user_id: str) -> Task:
        """Get a specific todo, ensuring user ownership."""
        statement = (
            select(Task)
            .where(Task.id == task_id)
            .where(Task.user_id == user_id)
        )
        task = self.session.exec(statement).first()
        if not task:
            raise TaskNotFoundError(task_id)
        return task

    def update_task(self, task_id: int, user_id: str, data: TaskUpdate) -> TaskUpdateResult:
        """
        Apply a partial update.

        When the update completes a recurring root, the next instance is
        created after the completion is committed. A failure to create it is
        logged and returned as a warning; the completion itself stands.
        """
        task = self.get_task(task_id, user_id)
        changes = data.model_dump(exclude_unset=True)
        previously_completed = task.completed
        warnings: List[str] = []

        for name in ("title", "description", "category", "priority", "completed"):
            if name in changes and changes[name] is not None:
                setattr(task, name, changes[name])
        if "due_date" in changes:
            task.due_date = changes["due_date"]
        if changes.get("subtasks") is not None:
            task.subtasks = _subtasks_from_input(data.subtasks, datetime.utcnow())
        if data.recurrence is not None:
            warnings.extend(self._merge_recurrence(task, data.recurrence))

        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        logger.info("Todo updated: user=%s todo=%s changes=%s", user_id, task.id, sorted(changes))

        next_instance = None
        try:
            next_instance = self.recurring.handle_recurring_completion(task, previously_completed)
        except Exception as e:
            self.recurring.metrics.recurrence_error()
            logger.exception("Failed to create next recurring instance for todo %s", task.id)
            warnings.append(f"Next recurring instance could not be created: {e}")
            self.session.refresh(task)

        return TaskUpdateResult(task=task, next_instance=next_instance, warnings=warnings)

    def delete_task(self, task_id: int, user_id: str):
        """Delete a todo, ensuring user ownership."""
        task = self.get_task(task_id, user_id)
        self.session.delete(task)
        self.session.commit()
        logger.info("Todo deleted: user=%s todo=%s", user_id, task_id)

    def _merge_recurrence(self, task: Task, update: RecurrenceIn, now: Optional[datetime] = None) -> List[str]:
        recurrence = _current_recurrence(task)
        recurrence.update(update.model_dump(exclude_unset=True))
        if recurrence.get("enabled") is None:
            recurrence["enabled"] = False
        warnings = self._validate_recurrence(recurrence)
        _apply_recurrence(task, recurrence)
        task.recurrence_next_due = self.recurring.calculate_next_due(task, now or datetime.utcnow())
        return warnings

    def set_recurrence(self, task_id: int, user_id: str, update: RecurrenceIn) -> Task:
        """Merge partial recurrence settings and recompute the next due date from now."""
        task = self.get_task(task_id, user_id)
        self._merge_recurrence(task, update)
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        logger.info("Todo recurrence updated: user=%s todo=%s", user_id, task.id)
        return task

    def remove_recurrence(self, task_id: int, user_id: str) -> Task:
        """Disable recurrence, keeping the pattern and history fields."""
        task = self.get_task(task_id, user_id)
        task.recurrence_enabled = False
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        logger.info("Todo recurrence disabled: user=%s todo=%s", user_id, task.id)
        return task

    def get_stats(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Counts of the user's todos by state, due window and category."""
        now = now or datetime.utcnow()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today_end = today_start + timedelta(days=1)

        def count(*conditions) -> int:
            statement = select(func.count()).select_from(Task).where(Task.user_id == user_id)
            for condition in conditions:
                statement = statement.where(condition)
            return self.session.exec(statement).one()

        total = count()
        completed = count(Task.completed == True)  # noqa: E712
        pending = count(Task.completed == False)  # noqa: E712
        overdue = count(Task.completed == False, Task.due_date < today_start)  # noqa: E712
        due_today = count(
            Task.completed == False,  # noqa: E712
            Task.due_date >= today_start,
            Task.due_date < today_end,
        )

        by_category_statement = (
            select(Task.category, func.count())
            .where(Task.user_id == user_id)
            .group_by(Task.category)
        )
        by_category = {category: n for category, n in self.session.exec(by_category_statement).all()}

        return {
            "total": total,
            "completed": completed,
            "pending": pending,
            "overdue": overdue,
            "due_today": due_today,
            "completion_rate": round(completed / total * 100) if total > 0 else 0,
            "by_category": by_category,
        }
