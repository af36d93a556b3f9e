"""
Recurrence Calculator.

Computes the next due date of a recurring task from its rule and a
reference date. Pure: no I/O and the rule is never modified.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class RecurrenceRule:
    """Snapshot of a task's recurrence configuration."""

    enabled: bool = False
    pattern: Optional[str] = None
    interval: Any = 1
    days_of_week: Tuple[int, ...] = ()
    day_of_month: Any = None
    end_date: Optional[datetime] = None

    @classmethod
    def from_task(cls, task) -> "RecurrenceRule":
        return cls(
            enabled=bool(task.recurrence_enabled),
            pattern=task.recurrence_pattern,
            interval=task.recurrence_interval,
            days_of_week=tuple(task.recurrence_days_of_week or ()),
            day_of_month=task.recurrence_day_of_month,
            end_date=task.recurrence_end_date,
        )


def _coerce_interval(value: Any) -> int:
    """Invalid or missing intervals count as 1."""
    if isinstance(value, bool):
        return 1
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return 1
    return interval if interval >= 1 else 1


def _selected_weekdays(days: Any) -> list:
    valid = set()
    for day in days or ():
        if isinstance(day, bool):
            continue
        try:
            day = int(day)
        except (TypeError, ValueError):
            continue
        if 0 <= day <= 6:
            valid.add(day)
    return sorted(valid)


def _sunday_based_weekday(value: datetime) -> int:
    """0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def _next_weekly(from_date: datetime, days: list) -> datetime:
    # Selected weekdays override the interval: every week qualifies.
    current = _sunday_based_weekday(from_date)
    later_this_week = [day for day in days if day > current]
    if later_this_week:
        return from_date + timedelta(days=later_this_week[0] - current)
    return from_date + timedelta(days=7 - current + days[0])


def _next_monthly(from_date: datetime, interval: int, day_of_month: Any) -> datetime:
    candidate = from_date + relativedelta(months=interval)

    try:
        requested = int(day_of_month) if day_of_month is not None else 0
    except (TypeError, ValueError):
        requested = 0
    if not requested:
        return candidate

    days_in_month = calendar.monthrange(candidate.year, candidate.month)[1]
    return candidate.replace(day=max(1, min(requested, days_in_month)))


def calculate_next_due_date(rule: Optional[RecurrenceRule], from_date: datetime) -> Optional[datetime]:
    """
    Calculate the next due date for a recurrence rule.

    Args:
        rule: Recurrence configuration (None means no recurrence)
        from_date: Reference date, usually "now" or the last due date

    Returns:
        The next due date, or None when recurrence is disabled, the pattern
        is unknown or the candidate falls after the rule's end date
    """
    if rule is None or not rule.enabled:
        return None

    interval = _coerce_interval(rule.interval)

    if rule.pattern == "daily":
        candidate = from_date + timedelta(days=interval)
    elif rule.pattern == "weekly":
        days = _selected_weekdays(rule.days_of_week)
        if days:
            candidate = _next_weekly(from_date, days)
        else:
            candidate = from_date + timedelta(weeks=interval)
    elif rule.pattern == "monthly":
        candidate = _next_monthly(from_date, interval, rule.day_of_month)
    elif rule.pattern == "yearly":
        candidate = from_date + relativedelta(years=interval)
    else:
        return None

    if rule.end_date is not None and candidate > rule.end_date:
        return None

    return candidate
