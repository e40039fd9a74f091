"""Archival policy: Active -> Archived on goal or by hand, Archived -> Active by hand."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .activity_state import ActivityState


@dataclass(frozen=True, slots=True)
class ArchivalEvent:
    """Emitted when an activity enters the archived state."""

    activity_id: int
    name: str
    archived_at: datetime
    automatic: bool


def goal_reached(state: ActivityState) -> bool:
    return state.ledger.count() >= state.goal_count


def check_and_archive(state: ActivityState, now: datetime) -> ArchivalEvent | None:
    """Archive an active activity whose ledger has reached its goal.

    Returns the event on the transition, ``None`` when nothing changed; an
    already archived activity never produces a second event.
    """

    if state.is_archived or not goal_reached(state):
        return None
    _archive(state, now)
    return ArchivalEvent(activity_id=state.id, name=state.name, archived_at=now, automatic=True)


def complete(state: ActivityState, now: datetime) -> ArchivalEvent | None:
    """Manual archive regardless of the completion count."""

    if state.is_archived:
        return None
    _archive(state, now)
    return ArchivalEvent(activity_id=state.id, name=state.name, archived_at=now, automatic=False)


def restore(state: ActivityState) -> bool:
    """Move an archived activity back to active tracking."""

    if not state.is_archived:
        return False
    state.activity.is_archived = False
    state.activity.archived_at = None
    return True


def _archive(state: ActivityState, now: datetime) -> None:
    state.activity.is_archived = True
    state.activity.archived_at = now


__all__ = ["ArchivalEvent", "check_and_archive", "complete", "goal_reached", "restore"]
