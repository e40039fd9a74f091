"""Business logic for scheduling, streaks, momentum and task sync."""

from .activity_state import ActivityState
from .archival import ArchivalEvent
from .end_date import resolve_end_date
from .habits import HabitService, ToggleResult
from .ledger import CompletionLedger
from .momentum import MOMENTUM_WEIGHTS, MomentumReport, MonthlyStats, StreakEntry, compute_momentum
from .notifications import LoggingNotifier, Notifier
from .outbox import FlushReport, SyncOutbox
from .streaks import compute_streak, longest_streak
from .sync_bridge import SyncBridge

__all__ = [
    "ActivityState",
    "ArchivalEvent",
    "CompletionLedger",
    "FlushReport",
    "HabitService",
    "LoggingNotifier",
    "MOMENTUM_WEIGHTS",
    "MomentumReport",
    "MonthlyStats",
    "Notifier",
    "StreakEntry",
    "SyncBridge",
    "SyncOutbox",
    "ToggleResult",
    "compute_momentum",
    "compute_streak",
    "longest_streak",
    "resolve_end_date",
]
