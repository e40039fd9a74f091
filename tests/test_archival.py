"""Tests for the Active/Archived state machine."""

from __future__ import annotations

from datetime import date, datetime, timezone

from streakline.models import Activity
from streakline.services import archival
from streakline.services.activity_state import ActivityState
from streakline.services.ledger import CompletionLedger

NOW = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)


def _state(goal: int, done: int, *, archived: bool = False) -> ActivityState:
    activity = Activity(
        id=7,
        user_id=1,
        name="Journal",
        start_date=date(2024, 1, 1),
        habit_days=goal,
        is_archived=archived,
    )
    ledger = CompletionLedger(date(2024, 1, 1 + offset) for offset in range(done))
    return ActivityState(activity=activity, ledger=ledger)


class TestCheckAndArchive:
    def test_below_goal_does_nothing(self):
        state = _state(goal=3, done=2)
        assert archival.check_and_archive(state, NOW) is None
        assert not state.is_archived

    def test_reaching_goal_archives_and_stamps(self):
        state = _state(goal=3, done=3)
        event = archival.check_and_archive(state, NOW)
        assert event is not None
        assert event.automatic
        assert event.activity_id == 7
        assert state.is_archived
        assert state.activity.archived_at == NOW

    def test_fires_exactly_once(self):
        state = _state(goal=3, done=3)
        first = archival.check_and_archive(state, NOW)
        second = archival.check_and_archive(state, NOW)
        assert first is not None
        assert second is None

    def test_over_goal_also_archives(self):
        state = _state(goal=2, done=4)
        assert archival.check_and_archive(state, NOW) is not None


class TestManualTransitions:
    def test_complete_regardless_of_progress(self):
        state = _state(goal=30, done=1)
        event = archival.complete(state, NOW)
        assert event is not None
        assert not event.automatic
        assert state.is_archived

    def test_complete_when_archived_is_noop(self):
        state = _state(goal=30, done=1, archived=True)
        assert archival.complete(state, NOW) is None

    def test_restore_clears_archive(self):
        state = _state(goal=3, done=3)
        archival.check_and_archive(state, NOW)
        assert archival.restore(state) is True
        assert not state.is_archived
        assert state.activity.archived_at is None
        assert archival.restore(state) is False

    def test_restored_activity_past_goal_rearchives_on_next_check(self):
        state = _state(goal=3, done=3)
        archival.check_and_archive(state, NOW)
        archival.restore(state)
        assert archival.goal_reached(state)
        assert archival.check_and_archive(state, NOW) is not None
