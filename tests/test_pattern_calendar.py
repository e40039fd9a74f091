"""Tests for weekly recurrence helpers."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from streakline.errors import InvalidPattern
from streakline.services.pattern_calendar import (
    EVERY_DAY,
    WEEKDAYS_ONLY,
    advance,
    count_scheduled_days,
    has_scheduled_days,
    is_scheduled,
    is_within_range,
    pattern_from_target_days,
    scheduled_dates,
    target_days_from_pattern,
    validate_pattern,
)

MONDAY = date(2024, 1, 1)
NONE = (False,) * 7
MON_WED_FRI = (True, False, True, False, True, False, False)


class TestIsScheduled:
    """Weekday lookups use Monday as index zero."""

    def test_monday_is_index_zero(self):
        only_monday = (True,) + (False,) * 6
        assert is_scheduled(MONDAY, only_monday)
        assert not is_scheduled(MONDAY + timedelta(days=1), only_monday)

    def test_weekend_excluded_from_weekdays(self):
        saturday = date(2024, 1, 6)
        sunday = date(2024, 1, 7)
        assert not is_scheduled(saturday, WEEKDAYS_ONLY)
        assert not is_scheduled(sunday, WEEKDAYS_ONLY)
        assert is_scheduled(sunday, EVERY_DAY)

    def test_within_range_is_inclusive(self):
        end = MONDAY + timedelta(days=4)
        assert is_within_range(MONDAY, MONDAY, end)
        assert is_within_range(end, MONDAY, end)
        assert not is_within_range(end + timedelta(days=1), MONDAY, end)
        assert not is_within_range(MONDAY - timedelta(days=1), MONDAY, end)


class TestValidation:
    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            validate_pattern((True,) * 6)

    def test_has_scheduled_days(self):
        assert has_scheduled_days(MON_WED_FRI)
        assert not has_scheduled_days(NONE)


class TestTargetDayConversion:
    """Stored weekday codes run 1 (Monday) to 7 (Sunday)."""

    def test_missing_schedule_means_every_day(self):
        assert pattern_from_target_days(None) == EVERY_DAY

    def test_empty_list_is_all_false(self):
        assert pattern_from_target_days([]) == NONE

    def test_codes_map_to_pattern(self):
        assert pattern_from_target_days([1, 3, 5]) == MON_WED_FRI
        assert pattern_from_target_days([7]) == (False,) * 6 + (True,)

    def test_out_of_range_code_rejected(self):
        with pytest.raises(ValueError):
            pattern_from_target_days([0, 1])
        with pytest.raises(ValueError):
            pattern_from_target_days([8])

    def test_pattern_back_to_codes(self):
        assert target_days_from_pattern(MON_WED_FRI) == [1, 3, 5]
        assert target_days_from_pattern(NONE) == []


class TestAdvance:
    def test_zero_steps_returns_same_day(self):
        saturday = date(2024, 1, 6)
        assert advance(saturday, 0, WEEKDAYS_ONLY) == saturday

    def test_moves_strictly_after_day(self):
        assert advance(MONDAY, 1, WEEKDAYS_ONLY) == date(2024, 1, 2)
        assert advance(MONDAY, 1, MON_WED_FRI) == date(2024, 1, 3)

    def test_skips_weekend(self):
        friday = date(2024, 1, 5)
        assert advance(friday, 1, WEEKDAYS_ONLY) == date(2024, 1, 8)
        assert advance(friday, 6, WEEKDAYS_ONLY) == date(2024, 1, 15)

    def test_negative_steps_rejected(self):
        with pytest.raises(ValueError):
            advance(MONDAY, -1, EVERY_DAY)

    def test_all_false_pattern_raises(self):
        with pytest.raises(InvalidPattern):
            advance(MONDAY, 1, NONE)


class TestScheduledDates:
    def test_first_dates_from_start(self):
        dates = scheduled_dates(MONDAY, WEEKDAYS_ONLY, 6)
        assert dates[0] == MONDAY
        assert dates[-1] == date(2024, 1, 8)
        assert len(dates) == 6

    def test_start_on_unscheduled_day(self):
        saturday = date(2024, 1, 6)
        assert scheduled_dates(saturday, MON_WED_FRI, 2) == [date(2024, 1, 8), date(2024, 1, 10)]

    def test_non_positive_count_is_empty(self):
        assert scheduled_dates(MONDAY, EVERY_DAY, 0) == []


class TestCountScheduledDays:
    @pytest.mark.parametrize("pattern", [EVERY_DAY, WEEKDAYS_ONLY, MON_WED_FRI, NONE])
    @pytest.mark.parametrize("span", [0, 1, 6, 7, 13, 30, 100])
    def test_matches_day_by_day_count(self, pattern, span):
        start = date(2024, 2, 28)
        end = start + timedelta(days=span)
        expected = sum(
            1 for offset in range(span + 1) if is_scheduled(start + timedelta(days=offset), pattern)
        )
        assert count_scheduled_days(start, end, pattern) == expected

    def test_reversed_range_is_zero(self):
        assert count_scheduled_days(MONDAY, MONDAY - timedelta(days=1), EVERY_DAY) == 0
