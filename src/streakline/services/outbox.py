"""Queue of explicit state writes replayed with exponential backoff.

Every queued command carries the intended end state ("set completed=True for
day D"), never a toggle, so replaying it any number of times converges on the
same result. One pending command exists per (kind, activity, date); a newer
local change replaces it, which makes the policy last-write-wins per entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.sync import SyncCommandRepository
from ..errors import ConcurrentModification, SyncWriteFailed
from ..logging_config import get_logger
from ..models.sync import SyncCommand, SyncKind
from .notifications import Notifier

logger = get_logger(__name__)

CommandKey = tuple[str, int, Optional[date]]
Handler = Callable[[SyncCommand], None]


class GenerationTracker:
    """Latest local generation written for each command key."""

    def __init__(self) -> None:
        self._latest: dict[CommandKey, int] = {}

    def record(self, key: CommandKey, generation: int) -> None:
        if generation >= self._latest.get(key, -1):
            self._latest[key] = generation

    def latest(self, key: CommandKey) -> Optional[int]:
        return self._latest.get(key)

    def ensure_current(self, command: SyncCommand) -> None:
        """Raise :class:`ConcurrentModification` for a superseded command."""

        latest = self._latest.get(command.key)
        if latest is not None and command.generation < latest:
            raise ConcurrentModification(command.activity_id, command.generation, latest)

    def forget_activity(self, activity_id: int) -> None:
        for key in [k for k in self._latest if k[1] == activity_id]:
            del self._latest[key]


@dataclass(frozen=True, slots=True)
class FlushReport:
    replayed: int = 0
    failed: int = 0
    escalated: int = 0
    discarded: int = 0


class SyncOutbox:
    """Persists failed writes and replays them later."""

    def __init__(
        self,
        repo: SyncCommandRepository,
        *,
        user_id: int,
        notifier: Notifier,
        now_provider: Callable[[], datetime],
        max_attempts: int = 5,
        retry_base_seconds: int = 30,
        retry_max_seconds: int = 3600,
    ):
        self.repo = repo
        self.user_id = user_id
        self.notifier = notifier
        self.now_provider = now_provider
        self.max_attempts = max_attempts
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds
        self.generations = GenerationTracker()

    def backoff(self, attempts: int) -> timedelta:
        """Delay before the next try after ``attempts`` failures."""

        exponent = max(attempts - 1, 0)
        seconds = min(self.retry_base_seconds * (2**exponent), self.retry_max_seconds)
        return timedelta(seconds=seconds)

    def note(self, kind: SyncKind, activity_id: int, target_date: Optional[date], generation: int) -> None:
        """Record a local change so older queued commands become stale."""

        self.generations.record((kind.value, activity_id, target_date), generation)

    def queue(
        self,
        kind: SyncKind,
        *,
        activity_id: int,
        title: str,
        target_date: Optional[date],
        value: bool,
        generation: int,
        error: str,
    ) -> SyncCommand:
        """Store a failed write for replay after the first backoff delay."""

        now = self.now_provider()
        command = SyncCommand(
            user_id=self.user_id,
            kind=kind.value,
            activity_id=activity_id,
            title=title,
            target_date=target_date,
            value=value,
            generation=generation,
            attempts=1,
            next_attempt_at=now + self.backoff(1),
            last_error=error[:500],
        )
        stored = self.repo.enqueue(command, user_id=self.user_id)
        logger.warning(
            "Queued write for retry",
            extra={
                "kind": kind.value,
                "activity_id": activity_id,
                "target_date": target_date.isoformat() if target_date else None,
                "value": value,
                "error": error,
            },
        )
        return stored

    def discard(self, kind: SyncKind, activity_id: int, target_date: Optional[date]) -> int:
        """Drop a pending command made obsolete by a successful direct write."""

        return self.repo.delete_by_key(kind.value, activity_id, target_date, user_id=self.user_id)

    def discard_activity(self, activity_id: int) -> int:
        self.generations.forget_activity(activity_id)
        return self.repo.delete_for_activity(activity_id, user_id=self.user_id)

    def pending(self, *, include_escalated: bool = True) -> list[SyncCommand]:
        return self.repo.list_pending(user_id=self.user_id, include_escalated=include_escalated)

    def flush(self, handlers: Mapping[str, Handler], *, limit: int = 100) -> FlushReport:
        """Replay due commands through ``handlers`` keyed by command kind."""

        now = self.now_provider()
        replayed = failed = escalated = discarded = 0

        for command in self.repo.list_due(now, user_id=self.user_id, limit=limit):
            if command.id is None:
                raise ValueError("stored sync command has no id")
            try:
                self.generations.ensure_current(command)
            except ConcurrentModification as exc:
                logger.info("Discarding stale sync command", extra={"reason": str(exc)})
                self.repo.delete(command.id, user_id=self.user_id)
                discarded += 1
                continue

            handler = handlers.get(command.kind)
            if handler is None:
                raise ValueError(f"no handler registered for sync kind {command.kind!r}")

            try:
                handler(command)
            except (SQLAlchemyError, SyncWriteFailed) as exc:
                attempts = command.attempts + 1
                give_up = attempts >= self.max_attempts
                self.repo.record_failure(
                    command.id,
                    attempts=attempts,
                    next_attempt_at=now + self.backoff(attempts),
                    last_error=str(exc),
                    escalated=give_up,
                    user_id=self.user_id,
                )
                command.attempts = attempts
                command.last_error = str(exc)
                if give_up:
                    escalated += 1
                    command.escalated = True
                    self.notifier.sync_failed(command)
                else:
                    failed += 1
                    logger.warning(
                        "Sync replay failed, will retry",
                        extra={"command_id": command.id, "attempts": attempts, "error": str(exc)},
                    )
                continue

            self.repo.delete(command.id, user_id=self.user_id)
            replayed += 1

        if replayed or failed or escalated or discarded:
            logger.info(
                "Flushed sync outbox",
                extra={
                    "replayed": replayed,
                    "failed": failed,
                    "escalated": escalated,
                    "discarded": discarded,
                },
            )
        return FlushReport(replayed=replayed, failed=failed, escalated=escalated, discarded=discarded)


__all__ = ["FlushReport", "GenerationTracker", "SyncOutbox"]
