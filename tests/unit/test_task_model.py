from datetime import datetime

from todo_api.models.task import Task


def add(session, task):
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


def test_new_completed_task_gets_completed_at(session, alice):
    task = add(session, Task(user_id=alice.id, title="Done already", completed=True))
    assert task.completed_at is not None


def test_new_open_task_clears_completed_at(session, alice):
    task = add(session, Task(user_id=alice.id, title="Open", completed_at=datetime(2025, 1, 1)))
    assert task.completed_at is None


def test_completed_at_follows_completed_flag(session, alice):
    task = add(session, Task(user_id=alice.id, title="Toggle"))
    assert task.completed_at is None

    task.completed = True
    add(session, task)
    first_completion = task.completed_at
    assert first_completion is not None

    task.completed = False
    add(session, task)
    assert task.completed_at is None


def test_unrelated_saves_keep_completed_at(session, alice):
    task = add(session, Task(user_id=alice.id, title="Stable", completed=True))
    stamped = task.completed_at

    task.title = "Stable, renamed"
    add(session, task)
    task.priority = "urgent"
    add(session, task)

    assert task.completed is True
    assert task.completed_at == stamped


def test_updated_at_moves_on_change(session, alice):
    task = add(session, Task(user_id=alice.id, title="Touch me", updated_at=datetime(2020, 1, 1)))
    task.description = "changed"
    add(session, task)
    assert task.updated_at > datetime(2020, 1, 1)


def test_recurrence_view(session, alice):
    plain = add(session, Task(user_id=alice.id, title="Plain"))
    weekly = add(
        session,
        Task(
            user_id=alice.id,
            title="Standup",
            recurrence_enabled=True,
            recurrence_pattern="weekly",
            recurrence_days_of_week=[1, 3],
        ),
    )

    assert plain.recurrence is None
    assert plain.is_recurring_root is False
    assert weekly.recurrence["pattern"] == "weekly"
    assert weekly.recurrence["days_of_week"] == [1, 3]
    assert weekly.recurrence["interval"] == 1
    assert weekly.is_recurring_root is True
