"""Notification port used to tell the caller about goal completions and sync trouble."""

from __future__ import annotations

from typing import Protocol

from ..logging_config import get_logger
from ..models.activity import Activity
from ..models.sync import SyncCommand

logger = get_logger(__name__)


class Notifier(Protocol):
    """Delivery is up to the UI layer; the engine only emits events."""

    def goal_completed(self, activity: Activity) -> None:  # pragma: no cover - interface
        ...

    def sync_failed(self, command: SyncCommand) -> None:  # pragma: no cover - interface
        ...


class LoggingNotifier:
    """Default notifier that records events in the application log."""

    def goal_completed(self, activity: Activity) -> None:
        logger.info(
            "Habit completed and moved to archive",
            extra={"activity_id": activity.id, "activity_name": activity.name},
        )

    def sync_failed(self, command: SyncCommand) -> None:
        logger.error(
            "Giving up on background sync until the next explicit resync",
            extra={
                "command_id": command.id,
                "kind": command.kind,
                "activity_id": command.activity_id,
                "attempts": command.attempts,
                "last_error": command.last_error,
            },
        )


__all__ = ["LoggingNotifier", "Notifier"]
