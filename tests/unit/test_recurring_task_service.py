from datetime import datetime, timedelta

import pytest
from sqlmodel import Session, select

from tests.conftest import make_user
from todo_api.db.config import create_db_engine
from todo_api.db.init import init_db
from todo_api.models.task import Task
from todo_api.services.recurring_task_service import RecurringTaskService
from todo_api.utils.metrics import MetricsCollector

COMPLETED_AT = datetime(2025, 1, 10, 9, 0)


def recurring_task(session, user, **overrides) -> Task:
    values = dict(
        user_id=user.id,
        title="Water the plants",
        category="personal",
        priority="high",
        due_date=datetime(2025, 1, 10, 9, 0),
        subtasks=[{"text": "Fill can", "completed": True, "created_at": "2025-01-01T00:00:00"}],
        recurrence_enabled=True,
        recurrence_pattern="daily",
        recurrence_interval=1,
    )
    values.update(overrides)
    task = Task(**values)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


def children_of(session, task):
    return list(session.exec(select(Task).where(Task.recurring_parent_id == task.id)).all())


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def service(session, metrics):
    return RecurringTaskService(session, metrics=metrics)


def test_completion_creates_next_day_instance(session, alice, service, metrics):
    task = recurring_task(session, alice)
    task.completed = True
    session.add(task)
    session.commit()

    instance = service.handle_recurring_completion(task, previously_completed=False, now=COMPLETED_AT)

    assert instance is not None
    assert instance.due_date == datetime(2025, 1, 11, 9, 0)
    assert instance.recurring_parent_id == task.id
    assert instance.is_recurring_instance is True
    assert instance.completed is False
    assert instance.completed_at is None
    assert instance.title == "Water the plants"
    assert instance.priority == "high"
    assert instance.subtasks[0]["text"] == "Fill can"
    assert instance.subtasks[0]["completed"] is False

    session.refresh(task)
    assert task.recurrence_next_due == datetime(2025, 1, 11, 9, 0)
    assert task.recurrence_last_created == COMPLETED_AT
    assert metrics.get_metrics()["counters"]["recurring_instances_created_total"] == 1


def test_instance_does_not_copy_recurrence_settings(session, alice, service):
    task = recurring_task(session, alice, recurrence_pattern="weekly", recurrence_days_of_week=[1])
    instance = service.create_next_instance(task, now=COMPLETED_AT)
    assert instance.recurrence_enabled is False
    assert instance.recurrence_pattern is None


def test_already_completed_task_does_not_spawn(session, alice, service):
    task = recurring_task(session, alice, completed=True)
    assert service.handle_recurring_completion(task, previously_completed=True, now=COMPLETED_AT) is None
    assert children_of(session, task) == []


def test_uncompleted_task_does_not_spawn(session, alice, service):
    task = recurring_task(session, alice)
    assert service.handle_recurring_completion(task, previously_completed=False, now=COMPLETED_AT) is None


def test_non_recurring_task_does_not_spawn(session, alice, service):
    task = recurring_task(session, alice, recurrence_enabled=False, completed=True)
    assert service.handle_recurring_completion(task, previously_completed=False, now=COMPLETED_AT) is None


def test_generated_instance_never_spawns(session, alice, service):
    root = recurring_task(session, alice)
    # Even with recurrence switched on, an instance is not a root
    instance = recurring_task(
        session, alice, is_recurring_instance=True, recurring_parent_id=root.id, completed=True
    )

    assert service.handle_recurring_completion(instance, previously_completed=False, now=COMPLETED_AT) is None
    assert children_of(session, instance) == []


def test_duplicate_occurrence_is_skipped(session, alice, service, metrics):
    task = recurring_task(session, alice)
    existing = Task(
        user_id=alice.id,
        title=task.title,
        due_date=datetime(2025, 1, 11, 9, 0),
        is_recurring_instance=True,
        recurring_parent_id=task.id,
    )
    session.add(existing)
    session.commit()

    assert service.create_next_instance(task, now=COMPLETED_AT) is None

    assert len(children_of(session, task)) == 1
    session.refresh(task)
    assert task.recurrence_next_due == datetime(2025, 1, 11, 9, 0)
    assert metrics.get_metrics()["counters"]["recurring_duplicates_skipped_total"] == 1
    assert metrics.get_metrics()["counters"]["recurring_instances_created_total"] == 0


def test_recurrence_past_end_date_creates_nothing(session, alice, service):
    task = recurring_task(session, alice, recurrence_end_date=datetime(2025, 1, 10, 12, 0))
    assert service.create_next_instance(task, now=COMPLETED_AT) is None
    assert children_of(session, task) == []


def test_sweep_materializes_each_root_once(session, alice, service, metrics):
    task = recurring_task(session, alice)
    now = datetime(2025, 2, 1, 6, 0)

    first = service.process_overdue_recurrences(now=now)
    second = service.process_overdue_recurrences(now=now)

    assert first.created_count == 1
    assert second.created_count == 0
    assert len(children_of(session, task)) == 1
    assert metrics.get_metrics()["counters"]["recurrence_sweeps_total"] == 2
    assert "recurrence_sweep_seconds" in metrics.get_metrics()["timers"]


def test_sweep_skips_root_with_pending_instance(session, alice, service):
    task = recurring_task(session, alice)
    service.process_overdue_recurrences(now=datetime(2025, 2, 1))

    # Next due has passed but the instance from the first run is still open
    later = service.process_overdue_recurrences(now=datetime(2025, 2, 5))

    assert later.created_count == 0
    assert later.skipped_count == 1
    assert len(children_of(session, task)) == 1


def test_sweep_ignores_instances_and_disabled_tasks(session, alice, service):
    root = recurring_task(session, alice)
    recurring_task(session, alice, recurrence_enabled=False)
    recurring_task(session, alice, is_recurring_instance=True, recurring_parent_id=root.id,
                   due_date=datetime(2024, 12, 1))

    due = service.find_due_recurrences(datetime(2025, 2, 1))

    assert [task.id for task in due] == [root.id]


def test_sweep_waits_for_next_due(session, alice, service):
    recurring_task(session, alice, recurrence_next_due=datetime(2025, 3, 1))
    result = service.process_overdue_recurrences(now=datetime(2025, 2, 1))
    assert result.created_count == 0
    assert result.skipped_count == 0


def test_sweep_isolates_failures(session, alice, service, metrics, monkeypatch):
    broken = recurring_task(session, alice, title="Broken")
    healthy = recurring_task(session, alice, title="Healthy")
    original = RecurringTaskService.create_next_instance

    def flaky(self, parent, now=None):
        if parent.title == "Broken":
            raise RuntimeError("storage unavailable")
        return original(self, parent, now=now)

    monkeypatch.setattr(RecurringTaskService, "create_next_instance", flaky)

    result = service.process_overdue_recurrences(now=datetime(2025, 2, 1))

    assert result.created_count == 1
    assert result.failures == [{"task_id": broken.id, "error": "storage unavailable"}]
    assert len(children_of(session, healthy)) == 1
    assert children_of(session, broken) == []
    assert metrics.get_metrics()["counters"]["recurring_errors_total"] == 1


def test_sweep_result_to_dict(session, alice, service):
    recurring_task(session, alice)
    payload = service.process_overdue_recurrences(now=datetime(2025, 2, 1)).to_dict()
    assert payload["created_count"] == 1
    assert len(payload["created"]) == 1
    assert payload["skipped_count"] == 0
    assert payload["failures"] == []


def test_completion_after_sweep_uses_completion_time(session, alice, service):
    task = recurring_task(session, alice)
    service.process_overdue_recurrences(now=datetime(2025, 2, 1))

    task.completed = True
    session.add(task)
    session.commit()
    instance = service.handle_recurring_completion(task, False, now=datetime(2025, 2, 3, 12, 0))

    assert instance.due_date == datetime(2025, 2, 4, 12, 0)
    assert len(children_of(session, task)) == 2


def test_deleting_parent_keeps_instances(session, alice, service):
    task = recurring_task(session, alice)
    instance = service.create_next_instance(task, now=COMPLETED_AT)
    instance_id = instance.id

    session.delete(task)
    session.commit()
    session.expire_all()

    orphan = session.get(Task, instance_id)
    assert orphan is not None
    assert orphan.recurring_parent_id is None
    assert orphan.due_date - COMPLETED_AT == timedelta(days=1)


@pytest.fixture
def file_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'workers.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


def test_interleaved_workers_create_one_instance(file_engine):
    with Session(file_engine) as setup:
        owner = make_user(setup, "worker", "worker@todo.io")
        task_id = recurring_task(setup, owner).id

    now = datetime(2025, 1, 10, 9, 0, 0, 1000)
    with Session(file_engine) as first, Session(file_engine) as second:
        first_service = RecurringTaskService(first, metrics=MetricsCollector())
        first_parent = first.get(Task, task_id)
        assert first_service.has_pending_instance(first_parent) is False

        # The other worker finishes its whole pass in between
        other = RecurringTaskService(second, metrics=MetricsCollector())
        assert other.process_overdue_recurrences(now=now + timedelta(milliseconds=3)).created_count == 1

        assert first_service.create_next_instance(first_parent, now=now) is None
        assert first_service.metrics.get_metrics()["counters"]["recurring_duplicates_skipped_total"] == 1

    with Session(file_engine) as check:
        children = check.exec(select(Task).where(Task.recurring_parent_id == task_id)).all()
        assert len(children) == 1
        assert children[0].due_date == now + timedelta(days=1, milliseconds=3)


def test_stale_parent_loses_claim_after_completion_race(file_engine):
    with Session(file_engine) as setup:
        owner = make_user(setup, "racer", "racer@todo.io")
        task_id = recurring_task(setup, owner).id

    with Session(file_engine) as first, Session(file_engine) as second:
        first_parent = first.get(Task, task_id)
        second_parent = second.get(Task, task_id)

        created = RecurringTaskService(second, metrics=MetricsCollector()).create_next_instance(
            second_parent, now=datetime(2025, 1, 10, 9, 0, 0, 5)
        )
        lost = RecurringTaskService(first, metrics=MetricsCollector()).create_next_instance(
            first_parent, now=datetime(2025, 1, 10, 9, 0, 0, 9)
        )

        assert created is not None
        assert lost is None

    with Session(file_engine) as check:
        parent = check.get(Task, task_id)
        assert parent.recurrence_last_created == datetime(2025, 1, 10, 9, 0, 0, 5)
        assert len(check.exec(select(Task).where(Task.recurring_parent_id == task_id)).all()) == 1
