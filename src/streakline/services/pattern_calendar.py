"""Weekly recurrence helpers.

A frequency pattern is a sequence of seven booleans indexed Monday=0 through
Sunday=6, the same indexing as :meth:`datetime.date.weekday`. Storage keeps the
pattern as ISO weekday codes (1 = Monday ... 7 = Sunday); the conversion helpers
below are the only place the two representations meet.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Iterator, Optional, Sequence

from ..errors import InvalidPattern

Pattern = Sequence[bool]

DAYS_IN_WEEK = 7
EVERY_DAY: tuple[bool, ...] = (True,) * DAYS_IN_WEEK
WEEKDAYS_ONLY: tuple[bool, ...] = (True, True, True, True, True, False, False)


def validate_pattern(pattern: Pattern) -> tuple[bool, ...]:
    """Return the pattern as a tuple, rejecting anything but seven entries."""

    values = tuple(bool(flag) for flag in pattern)
    if len(values) != DAYS_IN_WEEK:
        raise ValueError(f"frequency pattern needs {DAYS_IN_WEEK} entries, got {len(values)}")
    return values


def has_scheduled_days(pattern: Pattern) -> bool:
    return any(validate_pattern(pattern))


def require_scheduled_days(pattern: Pattern) -> tuple[bool, ...]:
    """Validate the pattern and raise :class:`InvalidPattern` when it is all-false."""

    values = validate_pattern(pattern)
    if not any(values):
        raise InvalidPattern()
    return values


def pattern_from_target_days(target_days: Optional[Iterable[int]]) -> tuple[bool, ...]:
    """Convert weekday codes (1 = Monday ... 7 = Sunday) into a pattern.

    ``None`` means the activity was stored without a schedule and runs every day.
    An empty collection yields the degenerate all-false pattern.
    """

    if target_days is None:
        return EVERY_DAY
    codes = set()
    for code in target_days:
        if not 1 <= int(code) <= DAYS_IN_WEEK:
            raise ValueError(f"weekday code must be between 1 and 7, got {code}")
        codes.add(int(code))
    return tuple(index + 1 in codes for index in range(DAYS_IN_WEEK))


def target_days_from_pattern(pattern: Pattern) -> list[int]:
    """Convert a pattern back into sorted weekday codes."""

    return [index + 1 for index, flag in enumerate(validate_pattern(pattern)) if flag]


def is_scheduled(day: date, pattern: Pattern) -> bool:
    """True when the pattern selects ``day``'s weekday."""

    return bool(pattern[day.weekday()])


def is_within_range(day: date, start: date, end: date) -> bool:
    """Inclusive range check used to gate whether a scheduled day counts."""

    return start <= day <= end


def advance(day: date, steps: int, pattern: Pattern) -> date:
    """Move forward over ``steps`` scheduled days strictly after ``day``.

    ``advance(day, 0, pattern)`` returns ``day`` unchanged. Any positive step
    count on an all-false pattern raises :class:`InvalidPattern`.
    """

    if steps < 0:
        raise ValueError("steps must be zero or positive")
    if steps == 0:
        return day
    values = require_scheduled_days(pattern)
    cursor = day
    remaining = steps
    while remaining:
        cursor += timedelta(days=1)
        if values[cursor.weekday()]:
            remaining -= 1
    return cursor


def iter_scheduled_days(start: date, pattern: Pattern) -> Iterator[date]:
    """Yield scheduled days on or after ``start`` indefinitely."""

    values = require_scheduled_days(pattern)
    cursor = start
    while True:
        if values[cursor.weekday()]:
            yield cursor
        cursor += timedelta(days=1)


def scheduled_dates(start: date, pattern: Pattern, count: int) -> list[date]:
    """Return the first ``count`` scheduled days on or after ``start``."""

    if count < 1:
        return []
    dates: list[date] = []
    for day in iter_scheduled_days(start, pattern):
        dates.append(day)
        if len(dates) == count:
            break
    return dates


def count_scheduled_days(start: date, end: date, pattern: Pattern) -> int:
    """Count scheduled days in the inclusive range ``[start, end]``."""

    values = validate_pattern(pattern)
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, leftover = divmod(total_days, DAYS_IN_WEEK)
    count = full_weeks * sum(values)
    first_weekday = start.weekday()
    for offset in range(leftover):
        if values[(first_weekday + offset) % DAYS_IN_WEEK]:
            count += 1
    return count


__all__ = [
    "DAYS_IN_WEEK",
    "EVERY_DAY",
    "WEEKDAYS_ONLY",
    "Pattern",
    "advance",
    "count_scheduled_days",
    "has_scheduled_days",
    "is_scheduled",
    "is_within_range",
    "iter_scheduled_days",
    "pattern_from_target_days",
    "require_scheduled_days",
    "scheduled_dates",
    "target_days_from_pattern",
    "validate_pattern",
]
