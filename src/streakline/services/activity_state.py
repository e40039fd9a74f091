"""In-memory view of an activity: its record, its ledger and a generation counter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..models.activity import Activity
from .end_date import DEFAULT_HORIZON_DAYS, resolve_end_date
from .ledger import CompletionLedger
from .pattern_calendar import pattern_from_target_days


@dataclass
class ActivityState:
    """Activity record plus the derived-state inputs the engine works on.

    ``generation`` increases on every local mutation and lets the service
    discard responses that belong to an older version of the activity.
    """

    activity: Activity
    ledger: CompletionLedger = field(default_factory=CompletionLedger)
    generation: int = 0

    @property
    def id(self) -> int:
        if self.activity.id is None:
            raise ValueError("activity has not been persisted yet")
        return self.activity.id

    @property
    def name(self) -> str:
        return self.activity.name

    @property
    def start_date(self) -> date:
        return self.activity.start_date

    @property
    def pattern(self) -> tuple[bool, ...]:
        return pattern_from_target_days(self.activity.target_days)

    @property
    def goal_count(self) -> int:
        return self.activity.habit_days

    @property
    def is_archived(self) -> bool:
        return self.activity.is_archived

    @property
    def total_completed(self) -> int:
        return self.ledger.count()

    @property
    def progress_percent(self) -> float:
        """Completions over goal, unclamped; may exceed 100 after edits."""

        if self.goal_count <= 0:
            return 0.0
        return self.total_completed / self.goal_count * 100

    def end_date(self, *, horizon_days: int = DEFAULT_HORIZON_DAYS) -> date:
        return resolve_end_date(
            self.start_date, self.pattern, self.goal_count, horizon_days=horizon_days
        )

    def bump(self) -> int:
        self.generation += 1
        return self.generation


__all__ = ["ActivityState"]
