"""Sync outbox repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ...models.sync import SyncCommand


class SyncCommandRepository(Protocol):
    """Persisted queue of explicit state writes awaiting replay."""

    def enqueue(self, command: SyncCommand, *, user_id: int) -> SyncCommand:
        """Store a command, replacing any pending one with the same key."""
        ...

    def list_due(self, now: datetime, *, user_id: int, limit: int = 100) -> list[SyncCommand]:
        """Return non-escalated commands whose next attempt is due."""
        ...

    def list_pending(self, *, user_id: int, include_escalated: bool = True) -> list[SyncCommand]:
        """Return every queued command."""
        ...

    def record_failure(
        self,
        command_id: int,
        *,
        attempts: int,
        next_attempt_at: datetime,
        last_error: Optional[str],
        escalated: bool,
        user_id: int,
    ) -> None:
        """Persist the outcome of a failed replay."""
        ...

    def delete(self, command_id: int, *, user_id: int) -> None:
        """Remove a command once replayed or superseded."""
        ...

    def delete_by_key(
        self, kind: str, activity_id: int, target_date: Optional[date], *, user_id: int
    ) -> int:
        """Drop the pending command for a key; return rows removed."""
        ...

    def delete_for_activity(self, activity_id: int, *, user_id: int) -> int:
        """Drop every pending command of a deleted activity."""
        ...
