"""
Recurring Task Service.

Materializes the next instance of a recurring task, reacts to completions
of recurring roots and backfills instances that nobody triggered.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from todo_api.models.task import Task
from todo_api.services.recurrence import RecurrenceRule, calculate_next_due_date
from todo_api.utils.logger import get_logger
from todo_api.utils.metrics import MetricsCollector, metrics_collector

logger = get_logger("recurring-task-service")

EPOCH = datetime(1970, 1, 1)


@dataclass
class SweepResult:
    """Aggregate outcome of one backfill sweep."""

    created: List[int] = field(default_factory=list)
    skipped_count: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_count": self.created_count,
            "created": list(self.created),
            "skipped_count": self.skipped_count,
            "failures": list(self.failures),
        }


class RecurringTaskService:
    """Service to handle recurring task logic."""

    def __init__(self, session: Session, metrics: Optional[MetricsCollector] = None):
        self.session = session
        self.metrics = metrics or metrics_collector

    def calculate_next_due(self, task: Task, from_date: datetime) -> Optional[datetime]:
        """Calculate the next due date of a task's recurrence from a reference date."""
        return calculate_next_due_date(RecurrenceRule.from_task(task), from_date)

    def has_pending_instance(self, parent: Task) -> bool:
        """True if a child already covers the period since the last materialization."""
        since = parent.recurrence_last_created or EPOCH
        statement = (
            select(Task.id)
            .where(Task.recurring_parent_id == parent.id)
            .where(Task.due_date >= since)
            .limit(1)
        )
        return self.session.exec(statement).first() is not None

    def _build_instance(self, parent: Task, due_date: datetime, now: datetime) -> Task:
        return Task(
            user_id=parent.user_id,
            shared_list_id=parent.shared_list_id,
            title=parent.title,
            description=parent.description,
            category=parent.category,
            priority=parent.priority,
            due_date=due_date,
            subtasks=[
                {"text": subtask.get("text"), "completed": False, "created_at": now.isoformat()}
                for subtask in parent.subtasks or []
            ],
            is_recurring_instance=True,
            recurring_parent_id=parent.id,
            completed=False,
        )

    def _claim_occurrence(
        self,
        parent_id: int,
        seen_last_created: Optional[datetime],
        now: datetime,
        next_due: datetime,
    ) -> bool:
        """
        Advance the parent's bookkeeping only if nobody else has since it was read.

        Compare-and-swap on recurrence_last_created inside the current
        transaction; exactly one worker wins a given period.
        """
        table = Task.__table__
        last_created = table.c.recurrence_last_created
        statement = (
            update(table)
            .where(table.c.id == parent_id)
            .where(last_created.is_(None) if seen_last_created is None else last_created == seen_last_created)
            .values(
                recurrence_last_created=now,
                recurrence_next_due=next_due,
                updated_at=datetime.utcnow(),
            )
        )
        return self.session.connection().execute(statement).rowcount == 1

    def create_next_instance(self, parent: Task, now: Optional[datetime] = None) -> Optional[Task]:
        """
        Create the next occurrence of a recurring task.

        The parent's bookkeeping is claimed with a conditional update and the
        child is inserted in the same transaction. Losing the claim, or a
        unique-constraint conflict on (recurring_parent_id, due_date), means
        another worker already created the instance and is not an error.

        Args:
            parent: Recurring root task
            now: Reference time (defaults to the current UTC time)

        Returns:
            The created Task, or None if recurrence has ended or the
            instance already existed
        """
        now = now or datetime.utcnow()
        next_due = self.calculate_next_due(parent, now)

        if next_due is None:
            logger.debug("Recurrence has no further occurrence", task_id=parent.id)
            return None

        parent_id = parent.id
        seen_last_created = parent.recurrence_last_created
        instance = self._build_instance(parent, next_due, now)

        try:
            if not self._claim_occurrence(parent_id, seen_last_created, now, next_due):
                self.session.rollback()
                self.metrics.duplicate_skipped()
                logger.info(
                    "Recurring instance claimed by another worker",
                    task_id=parent_id,
                    due_date=next_due.isoformat(),
                )
                return None
            self.session.add(instance)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            self.metrics.duplicate_skipped()
            logger.info(
                "Recurring instance already exists",
                task_id=parent_id,
                due_date=next_due.isoformat(),
            )
            self._advance_bookkeeping(parent, now, next_due)
            return None
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(instance)
        self.metrics.instance_created()
        logger.info(
            "Created next occurrence",
            task_id=parent_id,
            instance_id=instance.id,
            due_date=next_due.isoformat(),
        )
        return instance

    def _advance_bookkeeping(self, parent: Task, now: datetime, next_due: datetime):
        parent.recurrence_last_created = now
        parent.recurrence_next_due = next_due
        self.session.add(parent)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def handle_recurring_completion(
        self,
        task: Task,
        previously_completed: bool,
        now: Optional[datetime] = None,
    ) -> Optional[Task]:
        """
        React to a task being marked completed.

        Only a false -> true transition on a recurring root spawns an instance;
        generated instances never spawn further instances themselves.
        """
        if previously_completed or not task.completed:
            return None
        if not task.is_recurring_root:
            return None
        return self.create_next_instance(task, now=now)

    def find_due_recurrences(self, now: datetime) -> List[Task]:
        """Recurring roots whose next occurrence is due or was never computed."""
        statement = (
            select(Task)
            .where(Task.recurrence_enabled == True)  # noqa: E712
            .where(Task.is_recurring_instance == False)  # noqa: E712
            .where(or_(Task.recurrence_next_due <= now, Task.recurrence_next_due.is_(None)))
            .order_by(Task.id)
        )
        return list(self.session.exec(statement).all())

    def process_overdue_recurrences(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Backfill instances for every recurring root that is due.

        A failure on one task is recorded and does not stop the sweep.
        """
        now = now or datetime.utcnow()
        result = SweepResult()

        with self.metrics.time_operation("recurrence_sweep_seconds"):
            due_ids = [task.id for task in self.find_due_recurrences(now)]
            logger.info("Processing overdue recurrences", count=len(due_ids))

            for task_id in due_ids:
                try:
                    task = self.session.get(Task, task_id)
                    if task is None or self.has_pending_instance(task):
                        result.skipped_count += 1
                        continue

                    instance = self.create_next_instance(task, now=now)
                    if instance is None:
                        result.skipped_count += 1
                    else:
                        result.created.append(instance.id)
                except Exception as e:
                    self.session.rollback()
                    self.metrics.recurrence_error()
                    logger.exception("Failed to materialize recurring task", task_id=task_id)
                    result.failures.append({"task_id": task_id, "error": str(e)})

        self.metrics.increment_counter("recurrence_sweeps_total")
        logger.info(
            "Recurrence sweep finished",
            created_count=result.created_count,
            skipped_count=result.skipped_count,
            failure_count=len(result.failures),
        )
        return result
