"""Productivity analytics computed from a user's todos."""
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytz
from sqlmodel import Session, select

from todo_api.models.task import Task

HEATMAP_DAYS = 90
ALL_TIME_DAYS = 365


def _activity_level(count: int) -> int:
    if count == 0:
        return 0
    if count <= 2:
        return 1
    if count <= 4:
        return 2
    if count <= 6:
        return 3
    return 4


class AnalyticsService:
    """Service computing summary, trend and streak analytics."""

    def __init__(self, session: Session):
        self.session = session

    def _to_local(self, value: datetime, tz) -> datetime:
        return pytz.utc.localize(value).astimezone(tz)

    def compute(
        self,
        user_id: str,
        days: Optional[int] = 30,
        tz_name: str = "UTC",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Build the analytics payload.

        Args:
            user_id: Owner of the todos
            days: Trend window in days, None for all time (charted as one year)
            tz_name: IANA timezone used to bucket days and hours
            now: Reference time in naive UTC

        Raises:
            pytz.UnknownTimeZoneError: If tz_name is not a known timezone
        """
        tz = pytz.timezone(tz_name)
        now = now or datetime.utcnow()
        today = self._to_local(now, tz).date()
        day_count = ALL_TIME_DAYS if days is None else days

        todos = list(self.session.exec(select(Task).where(Task.user_id == user_id)).all())

        total = len(todos)
        completed = sum(1 for t in todos if t.completed)
        pending = total - completed
        overdue = sum(1 for t in todos if not t.completed and t.due_date and t.due_date < now)

        by_category: Counter = Counter(t.category for t in todos)
        by_priority: Counter = Counter(t.priority for t in todos)
        category_completion: Dict[str, Dict[str, int]] = {}
        for t in todos:
            entry = category_completion.setdefault(t.category, {"total": 0, "completed": 0})
            entry["total"] += 1
            if t.completed:
                entry["completed"] += 1

        completed_days: Counter = Counter()
        hourly_activity = [0] * 24
        for t in todos:
            if t.completed_at:
                local = self._to_local(t.completed_at, tz)
                completed_days[local.date()] += 1
                hourly_activity[local.hour] += 1
        created_days: Counter = Counter(self._to_local(t.created_at, tz).date() for t in todos)

        daily: List[Dict[str, Any]] = []
        for offset in range(day_count - 1, -1, -1):
            day = today - timedelta(days=offset)
            daily.append({
                "date": day.isoformat(),
                "completed": completed_days[day],
                "created": created_days[day],
            })

        heatmap: List[Dict[str, Any]] = []
        for offset in range(HEATMAP_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            count = completed_days[day]
            heatmap.append({"date": day.isoformat(), "count": count, "level": _activity_level(count)})

        current_streak, longest_streak = self._streaks(heatmap)

        with_due_dates = [t for t in todos if t.completed and t.due_date and t.completed_at]
        on_time = sum(1 for t in with_due_dates if t.completed_at <= t.due_date)
        late = len(with_due_dates) - on_time

        peak_hour = hourly_activity.index(max(hourly_activity))

        return {
            "summary": {
                "total": total,
                "completed": completed,
                "pending": pending,
                "overdue": overdue,
                "completion_rate": round(completed / total * 100) if total > 0 else 0,
            },
            "trends": {"daily": daily, "heatmap": heatmap},
            "breakdown": {
                "by_category": dict(by_category),
                "category_completion": category_completion,
                "by_priority": dict(by_priority),
            },
            "productivity": {
                "current_streak": current_streak,
                "longest_streak": longest_streak,
                "peak_hour": peak_hour,
                "hourly_activity": hourly_activity,
                "on_time_count": on_time,
                "late_count": late,
                "on_time_rate": round(on_time / len(with_due_dates) * 100) if with_due_dates else 0,
            },
            "achievements": self._achievements(completed, current_streak, longest_streak, on_time),
        }

    @staticmethod
    def _streaks(heatmap: List[Dict[str, Any]]):
        """Current streak counts back from today; a day without completions ends it."""
        current = longest = run = 0
        for i, day in enumerate(reversed(heatmap)):
            if day["count"] > 0:
                run += 1
                if i == run - 1:
                    current = run
                longest = max(longest, run)
            else:
                run = 0
        return current, longest

    @staticmethod
    def _achievements(completed: int, current_streak: int, longest_streak: int, on_time: int) -> List[Dict[str, Any]]:
        rules = [
            (completed >= 1, "first_task", "First Step", "Complete your first task"),
            (completed >= 10, "ten_tasks", "Getting Started", "Complete 10 tasks"),
            (completed >= 50, "fifty_tasks", "Productive", "Complete 50 tasks"),
            (completed >= 100, "hundred_tasks", "Century", "Complete 100 tasks"),
            (current_streak >= 7, "week_streak", "Week Warrior", "7-day streak"),
            (longest_streak >= 30, "month_streak", "Monthly Master", "30-day streak"),
            (on_time >= 10, "punctual", "Punctual Pro", "Complete 10 tasks on time"),
        ]
        return [
            {"id": key, "name": name, "description": description, "unlocked": True}
            for unlocked, key, name, description in rules
            if unlocked
        ]


def parse_days(value: str) -> Optional[int]:
    """'all' means all time; anything else must be a positive day count."""
    if value == "all":
        return None
    days = int(value)
    if days < 1:
        raise ValueError("days must be positive")
    return days

