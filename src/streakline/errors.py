"""Error kinds raised by the scheduling and progress engine."""

from __future__ import annotations

from datetime import date
from typing import Optional


class StreakLineError(Exception):
    """Base class for engine errors."""


class InvalidPattern(StreakLineError, ValueError):
    """Raised when a frequency pattern selects no weekdays at all."""

    def __init__(self, message: str = "frequency pattern has no scheduled weekdays"):
        super().__init__(message)


class GoalUnreachable(StreakLineError, RuntimeError):
    """Raised when the goal cannot be reached inside the resolver horizon."""

    def __init__(self, start: date, goal_count: int, horizon_days: int):
        self.start = start
        self.goal_count = goal_count
        self.horizon_days = horizon_days
        super().__init__(
            f"goal of {goal_count} occurrences from {start.isoformat()} "
            f"not reached within {horizon_days} days"
        )


class SyncWriteFailed(StreakLineError, RuntimeError):
    """Raised when mirroring completion state into task records fails."""

    def __init__(self, title: str, day: Optional[date], reason: str):
        self.title = title
        self.day = day
        self.reason = reason
        when = day.isoformat() if day else "-"
        super().__init__(f"failed to mirror {title!r} on {when}: {reason}")


class ConcurrentModification(StreakLineError, RuntimeError):
    """Advisory: a response belongs to a stale generation of an activity."""

    def __init__(self, activity_id: int, expected: int, current: int):
        self.activity_id = activity_id
        self.expected = expected
        self.current = current
        super().__init__(
            f"activity {activity_id} moved from generation {expected} to {current}"
        )


class ActivityNotFound(StreakLineError, LookupError):
    """Raised when an activity id is unknown to the service."""

    def __init__(self, activity_id: int):
        self.activity_id = activity_id
        super().__init__(f"activity {activity_id} not found")


__all__ = [
    "ActivityNotFound",
    "ConcurrentModification",
    "GoalUnreachable",
    "InvalidPattern",
    "StreakLineError",
    "SyncWriteFailed",
]
