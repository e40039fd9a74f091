"""Resolve the calendar date on which an activity's goal is reached."""

from __future__ import annotations

from datetime import date, timedelta

from ..errors import GoalUnreachable
from .pattern_calendar import Pattern, require_scheduled_days

# Ten years of days; past this the goal is reported unreachable.
DEFAULT_HORIZON_DAYS = 3650


def resolve_end_date(
    start: date,
    pattern: Pattern,
    goal_count: int,
    *,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> date:
    """Return the day the ``goal_count``-th scheduled occurrence falls on.

    Walks forward from ``start`` (inclusive) one day at a time, counting the
    days the pattern selects. The result is recomputed on every call because
    the pattern and goal can be edited after creation.

    Raises:
        InvalidPattern: the pattern selects no weekday.
        GoalUnreachable: the goal is not reached within ``horizon_days``.
        ValueError: ``goal_count`` is not positive.
    """

    if goal_count < 1:
        raise ValueError(f"goal_count must be positive, got {goal_count}")
    values = require_scheduled_days(pattern)

    count = 0
    cursor = start
    for _ in range(horizon_days):
        if values[cursor.weekday()]:
            count += 1
            if count == goal_count:
                return cursor
        cursor += timedelta(days=1)

    raise GoalUnreachable(start, goal_count, horizon_days)


__all__ = ["DEFAULT_HORIZON_DAYS", "resolve_end_date"]
