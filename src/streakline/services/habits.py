"""Habit service: owns a user's activities and exposes the engine operations.

Local state is authoritative. Every mutation lands in memory first, then is
written through the repositories as an explicit end state. Failed writes go to
the sync outbox; the in-memory change is never rolled back.

Order on a completion change: ledger write, archival check, task mirror.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..config import BaseConfig
from ..domain.repositories import ActivityRepository, SyncCommandRepository, TaskRepository
from ..errors import ActivityNotFound, ConcurrentModification, SyncWriteFailed
from ..logging_config import get_logger
from ..models.activity import Activity
from ..models.sync import SyncCommand, SyncKind
from . import archival
from .activity_state import ActivityState
from .ledger import CompletionLedger
from .momentum import (
    MomentumReport,
    MonthlyStats,
    StreakEntry,
    active_streaks,
    compute_momentum,
    monthly_stats,
    top_activities,
)
from .notifications import LoggingNotifier, Notifier
from .outbox import FlushReport, SyncOutbox
from .pattern_calendar import (
    Pattern,
    pattern_from_target_days,
    scheduled_dates,
    target_days_from_pattern,
)
from .streaks import compute_streak, longest_streak
from .sync_bridge import SyncBridge

logger = get_logger(__name__)

_EDITABLE_FIELDS = {"name", "description", "target_days", "habit_days", "start_date", "cover_image_url"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class ToggleResult:
    """Outcome of a completion change as seen by the caller."""

    activity_id: int
    day: date
    completed: bool
    changed: bool
    generation: int
    auto_archived: bool = False
    persisted: bool = True
    mirrored_tasks: Optional[int] = 0


class HabitService:
    """Explicit owner of the activity collection for one user."""

    def __init__(
        self,
        *,
        activity_repo: ActivityRepository,
        task_repo: TaskRepository,
        sync_repo: SyncCommandRepository,
        user_id: int,
        config: Optional[BaseConfig] = None,
        notifier: Optional[Notifier] = None,
        today_provider: Callable[[], date] = date.today,
        now_provider: Callable[[], datetime] = _utcnow,
    ):
        self.activity_repo = activity_repo
        self.user_id = user_id
        self.config = config or BaseConfig()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.today_provider = today_provider
        self.now_provider = now_provider
        self.bridge = SyncBridge(task_repo, user_id=user_id, now_provider=now_provider)
        self.outbox = SyncOutbox(
            sync_repo,
            user_id=user_id,
            notifier=self.notifier,
            now_provider=now_provider,
            max_attempts=self.config.SYNC_MAX_ATTEMPTS,
            retry_base_seconds=self.config.SYNC_RETRY_BASE_SECONDS,
            retry_max_seconds=self.config.SYNC_RETRY_MAX_SECONDS,
        )
        self._states: dict[int, ActivityState] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self) -> int:
        """Replace the in-memory collection with what storage holds.

        Writes still waiting in the outbox are laid over the stored rows.
        """

        activities = self.activity_repo.list_all(user_id=self.user_id)
        completions = self.activity_repo.list_all_completions(user_id=self.user_id)
        pending = self._pending_by_activity()
        with self._lock:
            previous = self._states
            self._states = {}
            for activity in activities:
                if activity.id is None:
                    continue
                generation = previous[activity.id].generation + 1 if activity.id in previous else 0
                state = ActivityState(
                    activity=activity,
                    ledger=CompletionLedger(completions.get(activity.id, [])),
                    generation=generation,
                )
                self._overlay_pending(state, pending.get(activity.id, []))
                self._states[activity.id] = state
        logger.info("Loaded activities", extra={"user_id": self.user_id, "count": len(activities)})
        return len(activities)

    def refresh(self, activity_id: int) -> bool:
        """Re-read one activity; the read is dropped if the activity changed meanwhile."""

        with self._lock:
            expected = self._require(activity_id).generation
        activity = self.activity_repo.get_by_id(activity_id, user_id=self.user_id)
        dates = self.activity_repo.list_completions(activity_id, user_id=self.user_id)
        if activity is None:
            raise ActivityNotFound(activity_id)
        try:
            self.apply_snapshot(activity_id, expected, activity, dates)
        except ConcurrentModification as exc:
            logger.info("Ignoring stale activity read", extra={"reason": str(exc)})
            return False
        return True

    def apply_snapshot(
        self, activity_id: int, expected_generation: int, activity: Activity, dates: Iterable[date]
    ) -> ActivityState:
        """Install a stored snapshot if no local change happened since it was requested."""

        with self._lock:
            state = self._require(activity_id)
            if state.generation != expected_generation:
                raise ConcurrentModification(activity_id, expected_generation, state.generation)
            state.activity = activity
            state.ledger = CompletionLedger(dates)
            self._overlay_pending(state, self._pending_by_activity().get(activity_id, []))
            return state

    def _pending_by_activity(self) -> dict[int, list[SyncCommand]]:
        grouped: dict[int, list[SyncCommand]] = {}
        for command in self.outbox.pending():
            grouped.setdefault(command.activity_id, []).append(command)
        return grouped

    def _overlay_pending(self, state: ActivityState, commands: Iterable[SyncCommand]) -> None:
        """Re-apply queued local writes that storage has not seen yet."""

        for command in commands:
            if command.kind == SyncKind.COMPLETION.value and command.target_date is not None:
                state.ledger.set(command.target_date, command.value)
            elif command.kind == SyncKind.ARCHIVE.value:
                state.activity.is_archived = command.value
                if not command.value:
                    state.activity.archived_at = None
                elif state.activity.archived_at is None:
                    state.activity.archived_at = command.created_at

    def get(self, activity_id: int) -> ActivityState:
        with self._lock:
            return self._require(activity_id)

    def list_activities(self, *, include_archived: bool = True) -> list[ActivityState]:
        with self._lock:
            states = sorted(self._states.values(), key=lambda s: s.id)
        if include_archived:
            return states
        return [s for s in states if not s.is_archived]

    def _require(self, activity_id: int) -> ActivityState:
        state = self._states.get(activity_id)
        if state is not None:
            return state
        activity = self.activity_repo.get_by_id(activity_id, user_id=self.user_id)
        if activity is None:
            raise ActivityNotFound(activity_id)
        dates = self.activity_repo.list_completions(activity_id, user_id=self.user_id)
        state = ActivityState(activity=activity, ledger=CompletionLedger(dates))
        self._overlay_pending(state, self._pending_by_activity().get(activity_id, []))
        self._states[activity_id] = state
        return state

    # ------------------------------------------------------------------
    # Activity lifecycle
    # ------------------------------------------------------------------
    def create_activity(
        self,
        name: str,
        *,
        start_date: Optional[date] = None,
        pattern: Optional[Pattern] = None,
        target_days: Optional[Sequence[int]] = None,
        habit_days: Optional[int] = None,
        description: str = "",
        cover_image_url: Optional[str] = None,
        add_to_tasks: bool = False,
        due_time: Optional[str] = None,
        priority: str = "medium",
    ) -> ActivityState:
        """Create an activity with an empty ledger.

        ``pattern`` and ``target_days`` are alternative spellings of the
        schedule; omitting both schedules every day. With ``add_to_tasks`` one
        companion task is created per scheduled date up to the goal.
        """

        if not name or not name.strip():
            raise ValueError("activity name is required")
        if pattern is not None and target_days is not None:
            raise ValueError("pass either pattern or target_days, not both")
        goal = self.config.DEFAULT_HABIT_DAYS if habit_days is None else habit_days
        if goal < 1:
            raise ValueError(f"habit_days must be positive, got {goal}")

        if pattern is not None:
            codes: Optional[list[int]] = target_days_from_pattern(pattern)
        elif target_days is not None:
            codes = target_days_from_pattern(pattern_from_target_days(target_days))
        else:
            codes = None

        activity = Activity(
            user_id=self.user_id,
            name=name.strip(),
            description=description,
            target_days=codes,
            habit_days=goal,
            start_date=start_date or self.today_provider(),
            cover_image_url=cover_image_url,
        )
        companion_dates: list[date] = []
        if add_to_tasks:
            companion_dates = scheduled_dates(
                activity.start_date, pattern_from_target_days(codes), goal
            )

        created = self.activity_repo.create(activity, user_id=self.user_id)
        state = ActivityState(activity=created)
        with self._lock:
            self._states[state.id] = state

        logger.info(
            "Created activity",
            extra={"activity_id": created.id, "habit_days": goal, "target_days": codes},
        )
        if companion_dates:
            self.bridge.create_companion_tasks(
                created, companion_dates, due_time=due_time, priority=priority
            )
        return state

    def update_activity(self, activity_id: int, **changes) -> ActivityState:
        """Edit schedule or display fields; completions are left untouched.

        The edit is applied to memory only after storage accepted it, so a
        failed write leaves both sides on the previous values. The task link is
        by name, so a rename leaves earlier tasks unmatched.
        """

        unknown = set(changes) - _EDITABLE_FIELDS - {"pattern"}
        if unknown:
            raise ValueError(f"cannot edit fields: {', '.join(sorted(unknown))}")
        if "pattern" in changes:
            if "target_days" in changes:
                raise ValueError("pass either pattern or target_days, not both")
            changes["target_days"] = target_days_from_pattern(changes.pop("pattern"))
        elif changes.get("target_days") is not None:
            changes["target_days"] = target_days_from_pattern(
                pattern_from_target_days(changes["target_days"])
            )
        if "habit_days" in changes and changes["habit_days"] < 1:
            raise ValueError(f"habit_days must be positive, got {changes['habit_days']}")
        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise ValueError("activity name is required")
            changes["name"] = changes["name"].strip()

        with self._lock:
            state = self._require(activity_id)
            edited = Activity.model_validate({**state.activity.model_dump(), **changes})
            stored = self.activity_repo.update(edited, user_id=self.user_id)
            state.activity = stored
            state.bump()
        logger.info("Updated activity", extra={"activity_id": activity_id, "fields": sorted(changes)})
        return state

    def delete_activity(self, activity_id: int) -> None:
        """Delete the activity and its completion records; tasks are kept."""

        with self._lock:
            self._require(activity_id)
            self._states.pop(activity_id, None)
            self.activity_repo.delete(activity_id, user_id=self.user_id)
            self.outbox.discard_activity(activity_id)
        logger.info("Deleted activity", extra={"activity_id": activity_id})

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    def resolve_end_date(self, activity_id: int) -> date:
        state = self.get(activity_id)
        return state.end_date(horizon_days=self.config.END_DATE_HORIZON_DAYS)

    def compute_streak(self, activity_id: int, *, today: Optional[date] = None) -> int:
        state = self.get(activity_id)
        return compute_streak(today or self.today_provider(), state.start_date, state.pattern, state.ledger)

    def longest_streak(self, activity_id: int, *, today: Optional[date] = None) -> int:
        state = self.get(activity_id)
        return longest_streak(today or self.today_provider(), state.start_date, state.pattern, state.ledger)

    def compute_momentum(
        self, activity_id: Optional[int] = None, *, today: Optional[date] = None
    ) -> MomentumReport:
        """Momentum for one activity, or for every non-archived activity."""

        if activity_id is not None:
            self.get(activity_id)
        return compute_momentum(
            self.list_activities(),
            today or self.today_provider(),
            activity_id=activity_id,
            weights=self.config.MOMENTUM_WEIGHTS,
            horizon_days=self.config.END_DATE_HORIZON_DAYS,
        )

    def monthly_stats(self, activity_id: int, *, month: Optional[date] = None) -> MonthlyStats:
        return monthly_stats(self.get(activity_id), month or self.today_provider())

    def active_streaks(self, *, today: Optional[date] = None) -> list[StreakEntry]:
        return active_streaks(self.list_activities(), today or self.today_provider())

    def top_activities(self, *, month: Optional[date] = None) -> list[MonthlyStats]:
        return top_activities(self.list_activities(), month or self.today_provider())

    # ------------------------------------------------------------------
    # Completion changes
    # ------------------------------------------------------------------
    def toggle_completion(self, activity_id: int, day: Optional[date] = None) -> ToggleResult:
        """Flip the completion for ``day`` (default today).

        Two calls cancel out. Boundaries that may deliver a request twice
        should call :meth:`set_completion` with the intended state instead.
        """

        day = day or self.today_provider()
        with self._lock:
            state = self._require(activity_id)
            completed = state.ledger.toggle(day)
            generation = state.bump()
            return self._propagate(state, day, completed, generation, mirror=True)

    def set_completion(self, activity_id: int, day: date, completed: bool) -> ToggleResult:
        """Idempotent variant of :meth:`toggle_completion`."""

        with self._lock:
            state = self._require(activity_id)
            if not state.ledger.set(day, completed):
                return ToggleResult(
                    activity_id=activity_id,
                    day=day,
                    completed=completed,
                    changed=False,
                    generation=state.generation,
                    mirrored_tasks=None,
                )
            generation = state.bump()
            return self._propagate(state, day, completed, generation, mirror=True)

    def complete_from_task(self, task_id: int) -> bool:
        """Record a habit completion for a finished companion task.

        Only completed tasks tagged as habit companions with a due date
        count; the habit is found by the task title. Returns True when a new
        completion was recorded.
        """

        task = self.bridge.task_repo.get_by_id(task_id, user_id=self.user_id)
        if task is None or not task.is_completed or task.due_date is None or not task.is_habit_companion:
            return False
        with self._lock:
            state = self._find_by_name(task.title)
            if state is None or state.ledger.is_completed(task.due_date):
                return False
            state.ledger.set(task.due_date, True)
            generation = state.bump()
            self._propagate(state, task.due_date, True, generation, mirror=False)
        logger.info(
            "Recorded completion from task",
            extra={"task_id": task_id, "activity_id": state.id, "day": task.due_date.isoformat()},
        )
        return True

    def _find_by_name(self, name: str) -> Optional[ActivityState]:
        matches = sorted((s for s in self._states.values() if s.name == name), key=lambda s: s.id)
        if matches:
            return matches[0]
        activity = self.activity_repo.get_by_name(name, user_id=self.user_id)
        if activity is None or activity.id is None:
            return None
        return self._require(activity.id)

    def _propagate(
        self, state: ActivityState, day: date, completed: bool, generation: int, *, mirror: bool
    ) -> ToggleResult:
        persisted = self._write_completion(state, day, completed, generation)

        auto_archived = False
        if completed:
            auto_archived = self._auto_archive(state) is not None

        mirrored: Optional[int] = 0
        if mirror:
            mirrored = self._mirror(state, day, completed, generation)

        return ToggleResult(
            activity_id=state.id,
            day=day,
            completed=completed,
            changed=True,
            generation=generation,
            auto_archived=auto_archived,
            persisted=persisted,
            mirrored_tasks=mirrored,
        )

    def _write_completion(self, state: ActivityState, day: date, completed: bool, generation: int) -> bool:
        self.outbox.note(SyncKind.COMPLETION, state.id, day, generation)
        try:
            self.activity_repo.set_completion(state.id, day, completed, user_id=self.user_id)
        except SQLAlchemyError as exc:
            self._queue(SyncKind.COMPLETION, state, day, completed, generation, exc)
            return False
        self._discard_queued(SyncKind.COMPLETION, state.id, day)
        return True

    def _mirror(self, state: ActivityState, day: date, completed: bool, generation: int) -> Optional[int]:
        self.outbox.note(SyncKind.TASK_MIRROR, state.id, day, generation)
        try:
            touched = self.bridge.mirror(state.name, day, completed)
        except SyncWriteFailed as exc:
            self._queue(SyncKind.TASK_MIRROR, state, day, completed, generation, exc)
            return None
        self._discard_queued(SyncKind.TASK_MIRROR, state.id, day)
        return touched

    def _queue(
        self,
        kind: SyncKind,
        state: ActivityState,
        day: Optional[date],
        value: bool,
        generation: int,
        exc: Exception,
    ) -> None:
        try:
            self.outbox.queue(
                kind,
                activity_id=state.id,
                title=state.name,
                target_date=day,
                value=value,
                generation=generation,
                error=str(exc),
            )
        except SQLAlchemyError:
            # Local state still holds the change; an explicit resync repairs storage.
            logger.exception(
                "Could not queue failed write",
                extra={"kind": kind.value, "activity_id": state.id},
            )

    def _discard_queued(self, kind: SyncKind, activity_id: int, day: Optional[date]) -> None:
        try:
            self.outbox.discard(kind, activity_id, day)
        except SQLAlchemyError:
            logger.exception(
                "Could not clear superseded sync command",
                extra={"kind": kind.value, "activity_id": activity_id},
            )

    # ------------------------------------------------------------------
    # Archival
    # ------------------------------------------------------------------
    def check_and_archive(self, activity_id: int) -> Optional[archival.ArchivalEvent]:
        """Archive the activity if its goal is met; None when nothing changed."""

        with self._lock:
            return self._auto_archive(self._require(activity_id))

    def complete_activity(self, activity_id: int) -> bool:
        """Manually archive an activity regardless of its progress."""

        with self._lock:
            state = self._require(activity_id)
            event = archival.complete(state, self.now_provider())
            if event is None:
                return False
            self._write_archive(state, True, state.bump())
        self.notifier.goal_completed(state.activity)
        return True

    def restore_activity(self, activity_id: int) -> bool:
        """Move an archived activity back to active tracking."""

        with self._lock:
            state = self._require(activity_id)
            if not archival.restore(state):
                return False
            self._write_archive(state, False, state.bump())
        logger.info("Restored activity", extra={"activity_id": activity_id})
        return True

    def _auto_archive(self, state: ActivityState) -> Optional[archival.ArchivalEvent]:
        event = archival.check_and_archive(state, self.now_provider())
        if event is None:
            return None
        self._write_archive(state, True, state.generation)
        logger.info(
            "Goal reached, activity archived",
            extra={"activity_id": state.id, "completed": state.total_completed, "goal": state.goal_count},
        )
        self.notifier.goal_completed(state.activity)
        return event

    def _write_archive(self, state: ActivityState, archived: bool, generation: int) -> None:
        self.outbox.note(SyncKind.ARCHIVE, state.id, None, generation)
        try:
            self.activity_repo.set_archived(
                state.id, archived, state.activity.archived_at, user_id=self.user_id
            )
        except SQLAlchemyError as exc:
            self._queue(SyncKind.ARCHIVE, state, None, archived, generation, exc)
            return
        self._discard_queued(SyncKind.ARCHIVE, state.id, None)

    # ------------------------------------------------------------------
    # Sync maintenance
    # ------------------------------------------------------------------
    def resync_tasks(self, activity_id: int) -> int:
        """Make every task titled after the activity match the ledger."""

        state = self.get(activity_id)
        touched = self.bridge.resync(state.name, state.ledger)
        logger.info("Resynced tasks", extra={"activity_id": activity_id, "tasks": touched})
        return touched

    def pending_sync(self) -> list[SyncCommand]:
        return self.outbox.pending()

    def flush_pending_sync(self) -> FlushReport:
        """Replay queued writes; used by the background scheduler."""

        with self._lock:
            return self.outbox.flush(
                {
                    SyncKind.COMPLETION.value: self._replay_completion,
                    SyncKind.TASK_MIRROR.value: self._replay_mirror,
                    SyncKind.ARCHIVE.value: self._replay_archive,
                }
            )

    def _replay_completion(self, command: SyncCommand) -> None:
        if command.target_date is None:
            raise ValueError(f"completion command {command.id} has no target date")
        self.activity_repo.set_completion(
            command.activity_id, command.target_date, command.value, user_id=self.user_id
        )

    def _replay_mirror(self, command: SyncCommand) -> None:
        if command.target_date is None:
            raise ValueError(f"task mirror command {command.id} has no target date")
        self.bridge.mirror(command.title, command.target_date, command.value)

    def _replay_archive(self, command: SyncCommand) -> None:
        archived_at = None
        state = self._states.get(command.activity_id)
        if command.value:
            archived_at = state.activity.archived_at if state else None
            archived_at = archived_at or self.now_provider()
        self.activity_repo.set_archived(
            command.activity_id, command.value, archived_at, user_id=self.user_id
        )


__all__ = ["HabitService", "ToggleResult"]
