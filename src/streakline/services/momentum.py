"""Daily, weekly and overall progress ratios and the weighted momentum index."""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from ..errors import GoalUnreachable, InvalidPattern
from ..logging_config import get_logger
from .activity_state import ActivityState
from .end_date import DEFAULT_HORIZON_DAYS
from .pattern_calendar import is_scheduled, is_within_range
from .streaks import compute_streak

logger = get_logger(__name__)

# Daily, weekly and overall weights; they must sum to 100.
MOMENTUM_WEIGHTS: tuple[int, int, int] = (40, 30, 30)
WEEK_WINDOW_DAYS = 7
ACTIVE_STREAK_LIMIT = 8
TOP_ACTIVITY_LIMIT = 5


@dataclass(frozen=True, slots=True)
class MomentumReport:
    """Bounded percentage scores for a scope of activities."""

    momentum: int
    daily_progress: int
    weekly_progress: int
    overall_progress: int
    daily_ratio: float
    weekly_ratio: float
    overall_ratio: float
    total_completed: int
    total_remaining: int


@dataclass(frozen=True, slots=True)
class MonthlyStats:
    activity_id: int
    name: str
    completed: int
    total: int
    progress: int


@dataclass(frozen=True, slots=True)
class StreakEntry:
    activity_id: int
    name: str
    streak: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""

    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ratio(completed: int, total: int) -> float:
    # Zero denominators contribute nothing rather than NaN.
    if total <= 0:
        return 0.0
    return min(max(completed / total, 0.0), 1.0)


def _percent(ratio: float) -> int:
    return round_half_up(ratio * 100)


def _select_scope(
    states: Iterable[ActivityState], activity_id: Optional[int]
) -> list[ActivityState]:
    if activity_id is not None:
        return [s for s in states if s.id == activity_id]
    return [s for s in states if not s.is_archived]


def _live_range(state: ActivityState, horizon_days: int) -> Optional[tuple[date, date]]:
    try:
        return state.start_date, state.end_date(horizon_days=horizon_days)
    except (InvalidPattern, GoalUnreachable) as exc:
        logger.warning(
            "Skipping activity in ranged progress",
            extra={"activity_id": state.activity.id, "reason": str(exc)},
        )
        return None


def compute_momentum(
    states: Iterable[ActivityState],
    today: date,
    *,
    activity_id: Optional[int] = None,
    weights: Sequence[int] = MOMENTUM_WEIGHTS,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> MomentumReport:
    """Aggregate progress over one activity or every non-archived activity.

    A selected ``activity_id`` is reported even when archived. Daily and weekly
    ratios only count scheduled days inside each activity's start/end range.
    """

    daily_weight, weekly_weight, overall_weight = weights
    daily_done = daily_total = 0
    weekly_done = weekly_total = 0
    all_done = all_total = 0
    window = [today - timedelta(days=offset) for offset in range(WEEK_WINDOW_DAYS)]

    for state in _select_scope(states, activity_id):
        all_done += state.total_completed
        all_total += state.goal_count

        live = _live_range(state, horizon_days)
        if live is None:
            continue
        start, end = live
        pattern = state.pattern

        if is_scheduled(today, pattern) and is_within_range(today, start, end):
            daily_total += 1
            if state.ledger.is_completed(today):
                daily_done += 1

        for day in window:
            if is_scheduled(day, pattern) and is_within_range(day, start, end):
                weekly_total += 1
                if state.ledger.is_completed(day):
                    weekly_done += 1

    daily = _ratio(daily_done, daily_total)
    weekly = _ratio(weekly_done, weekly_total)
    overall = _ratio(all_done, all_total)
    momentum = round_half_up(daily * daily_weight + weekly * weekly_weight + overall * overall_weight)

    return MomentumReport(
        momentum=min(max(momentum, 0), 100),
        daily_progress=_percent(daily),
        weekly_progress=_percent(weekly),
        overall_progress=_percent(overall),
        daily_ratio=daily,
        weekly_ratio=weekly,
        overall_ratio=overall,
        total_completed=all_done,
        total_remaining=max(all_total - all_done, 0),
    )


def monthly_stats(state: ActivityState, month: date) -> MonthlyStats:
    """Scheduled vs completed days for the calendar month containing ``month``."""

    first = month.replace(day=1)
    last = first.replace(day=monthrange(first.year, first.month)[1])
    pattern = state.pattern
    completed = total = 0
    day = first
    while day <= last:
        if is_scheduled(day, pattern):
            total += 1
            if state.ledger.is_completed(day):
                completed += 1
        day += timedelta(days=1)
    return MonthlyStats(
        activity_id=state.id,
        name=state.name,
        completed=completed,
        total=total,
        progress=_percent(_ratio(completed, total)),
    )


def active_streaks(
    states: Iterable[ActivityState], today: date, *, limit: int = ACTIVE_STREAK_LIMIT
) -> list[StreakEntry]:
    """Activities with a positive current streak, longest first."""

    entries = [
        StreakEntry(
            activity_id=s.id,
            name=s.name,
            streak=compute_streak(today, s.start_date, s.pattern, s.ledger),
        )
        for s in states
    ]
    ranked = sorted((e for e in entries if e.streak > 0), key=lambda e: e.streak, reverse=True)
    return ranked[:limit]


def top_activities(
    states: Iterable[ActivityState], month: date, *, limit: int = TOP_ACTIVITY_LIMIT
) -> list[MonthlyStats]:
    """Activities ranked by completions in the given month."""

    stats = [monthly_stats(s, month) for s in states]
    return sorted(stats, key=lambda s: s.completed, reverse=True)[:limit]


__all__ = [
    "MOMENTUM_WEIGHTS",
    "MomentumReport",
    "MonthlyStats",
    "StreakEntry",
    "active_streaks",
    "compute_momentum",
    "monthly_stats",
    "round_half_up",
    "top_activities",
]
