from datetime import datetime

import pytest

from todo_api.models.task import Task
from todo_api.services.analytics_service import AnalyticsService, parse_days

NOW = datetime(2025, 1, 10, 12, 0)
CREATED = datetime(2025, 1, 8, 8, 0)


@pytest.fixture
def todos(session, alice):
    rows = [
        Task(user_id=alice.id, title="On time", category="work", priority="high", completed=True,
             completed_at=datetime(2025, 1, 10, 9, 0), due_date=datetime(2025, 1, 11)),
        Task(user_id=alice.id, title="Late", category="work", completed=True,
             completed_at=datetime(2025, 1, 9, 9, 0), due_date=datetime(2025, 1, 8)),
        Task(user_id=alice.id, title="Evening", category="health", completed=True,
             completed_at=datetime(2025, 1, 8, 22, 0)),
        Task(user_id=alice.id, title="Overdue", category="health", due_date=datetime(2025, 1, 5)),
        Task(user_id=alice.id, title="Someday"),
    ]
    for row in rows:
        row.created_at = CREATED
        session.add(row)
    session.commit()
    return rows


def test_summary_and_breakdown(session, alice, todos):
    result = AnalyticsService(session).compute(alice.id, days=7, now=NOW)

    assert result["summary"] == {
        "total": 5,
        "completed": 3,
        "pending": 2,
        "overdue": 1,
        "completion_rate": 60,
    }
    assert result["breakdown"]["by_category"] == {"work": 2, "health": 2, "general": 1}
    assert result["breakdown"]["category_completion"]["health"] == {"total": 2, "completed": 1}
    assert result["breakdown"]["by_priority"] == {"high": 1, "medium": 4}


def test_trends(session, alice, todos):
    result = AnalyticsService(session).compute(alice.id, days=7, now=NOW)

    daily = result["trends"]["daily"]
    assert len(daily) == 7
    assert daily[-1] == {"date": "2025-01-10", "completed": 1, "created": 0}
    assert daily[-3] == {"date": "2025-01-08", "completed": 1, "created": 5}

    heatmap = result["trends"]["heatmap"]
    assert len(heatmap) == 90
    assert heatmap[-1] == {"date": "2025-01-10", "count": 1, "level": 1}


def test_all_time_window_charts_a_year(session, alice, todos):
    result = AnalyticsService(session).compute(alice.id, days=None, now=NOW)
    assert len(result["trends"]["daily"]) == 365


def test_productivity(session, alice, todos):
    productivity = AnalyticsService(session).compute(alice.id, now=NOW)["productivity"]

    assert productivity["current_streak"] == 3
    assert productivity["longest_streak"] == 3
    assert productivity["peak_hour"] == 9
    assert productivity["on_time_count"] == 1
    assert productivity["late_count"] == 1
    assert productivity["on_time_rate"] == 50


def test_timezone_shifts_hours(session, alice, todos):
    productivity = AnalyticsService(session).compute(alice.id, tz_name="America/New_York", now=NOW)["productivity"]
    assert productivity["peak_hour"] == 4
    assert productivity["hourly_activity"][17] == 1


def test_unknown_timezone(session, alice):
    import pytz

    with pytest.raises(pytz.UnknownTimeZoneError):
        AnalyticsService(session).compute(alice.id, tz_name="Mars/Olympus", now=NOW)


def test_achievements(session, alice, todos):
    achievements = AnalyticsService(session).compute(alice.id, now=NOW)["achievements"]
    assert [achievement["id"] for achievement in achievements] == ["first_task"]


def test_empty_user(session, alice):
    result = AnalyticsService(session).compute(alice.id, now=NOW)
    assert result["summary"]["completion_rate"] == 0
    assert result["productivity"]["current_streak"] == 0
    assert result["productivity"]["on_time_rate"] == 0
    assert result["achievements"] == []


def test_streak_broken_by_gap():
    heatmap = [{"count": 1}, {"count": 1}, {"count": 0}, {"count": 2}]
    assert AnalyticsService._streaks(heatmap) == (1, 2)


def test_no_completion_today_means_no_current_streak():
    heatmap = [{"count": 1}, {"count": 1}, {"count": 0}]
    assert AnalyticsService._streaks(heatmap) == (0, 2)


@pytest.mark.parametrize("value, expected", [("all", None), ("7", 7), ("365", 365)])
def test_parse_days(value, expected):
    assert parse_days(value) == expected


@pytest.mark.parametrize("value", ["0", "-1", "week"])
def test_parse_days_rejects(value):
    with pytest.raises(ValueError):
        parse_days(value)
