"""Streak calculations over scheduled days."""

from __future__ import annotations

from datetime import date, timedelta

from .ledger import CompletionLedger
from .pattern_calendar import Pattern, is_scheduled, validate_pattern


def compute_streak(today: date, start: date, pattern: Pattern, ledger: CompletionLedger) -> int:
    """Count consecutive completed scheduled days walking back from ``today``.

    Unscheduled days neither break nor extend the streak. A scheduled day that
    was missed in the past ends the walk, but ``today`` itself is still open:
    leaving it incomplete does not break the streak.
    """

    values = validate_pattern(pattern)
    streak = 0
    cursor = today
    while cursor >= start:
        if is_scheduled(cursor, values):
            if ledger.is_completed(cursor):
                streak += 1
            elif cursor != today:
                break
        cursor -= timedelta(days=1)
    return streak


def longest_streak(today: date, start: date, pattern: Pattern, ledger: CompletionLedger) -> int:
    """Return the longest run of completed scheduled days between start and today.

    An incomplete ``today`` is treated as open, like :func:`compute_streak`.
    """

    values = validate_pattern(pattern)
    longest = 0
    run = 0
    cursor = start
    while cursor <= today:
        if is_scheduled(cursor, values):
            if ledger.is_completed(cursor):
                run += 1
                longest = max(longest, run)
            elif cursor != today:
                run = 0
        cursor += timedelta(days=1)
    return longest


def compute_streaks(
    today: date, start: date, pattern: Pattern, ledger: CompletionLedger
) -> tuple[int, int]:
    """Return (current_streak, longest_streak)."""

    return (
        compute_streak(today, start, pattern, ledger),
        longest_streak(today, start, pattern, ledger),
    )


__all__ = ["compute_streak", "compute_streaks", "longest_streak"]
