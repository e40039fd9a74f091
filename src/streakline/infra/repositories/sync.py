"""SQLModel implementation of the sync outbox."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.sync import SyncCommand


class SQLModelSyncCommandRepository:
    """Outbox stored in the ``sync_command`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _find_by_key(
        self,
        session: Session,
        kind: str,
        activity_id: int,
        target_date: Optional[date],
        user_id: int,
    ) -> Optional[SyncCommand]:
        statement = (
            select(SyncCommand)
            .where(SyncCommand.user_id == user_id)
            .where(SyncCommand.kind == kind)
            .where(SyncCommand.activity_id == activity_id)
        )
        if target_date is None:
            statement = statement.where(SyncCommand.target_date == None)  # noqa: E711
        else:
            statement = statement.where(SyncCommand.target_date == target_date)
        return session.exec(statement).first()

    def enqueue(self, command: SyncCommand, *, user_id: int) -> SyncCommand:
        """Store a command; a pending one with the same key is overwritten."""
        with self.session_factory() as session:
            existing = self._find_by_key(
                session, command.kind, command.activity_id, command.target_date, user_id
            )
            if existing is None:
                command.user_id = user_id
                session.add(command)
                target = command
            else:
                existing.title = command.title
                existing.value = command.value
                existing.generation = command.generation
                existing.attempts = command.attempts
                existing.next_attempt_at = command.next_attempt_at
                existing.last_error = command.last_error
                existing.escalated = command.escalated
                session.add(existing)
                target = existing
            session.commit()
            session.refresh(target)
            session.expunge(target)
            return target

    def list_due(self, now: datetime, *, user_id: int, limit: int = 100) -> list[SyncCommand]:
        with self.session_factory() as session:
            statement = (
                select(SyncCommand)
                .where(SyncCommand.user_id == user_id)
                .where(SyncCommand.escalated == False)  # noqa: E712
                .where(SyncCommand.next_attempt_at <= now)
                .order_by(SyncCommand.created_at, SyncCommand.id)  # type: ignore[arg-type]
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_pending(self, *, user_id: int, include_escalated: bool = True) -> list[SyncCommand]:
        with self.session_factory() as session:
            statement = (
                select(SyncCommand)
                .where(SyncCommand.user_id == user_id)
                .order_by(SyncCommand.created_at, SyncCommand.id)  # type: ignore[arg-type]
            )
            if not include_escalated:
                statement = statement.where(SyncCommand.escalated == False)  # noqa: E712
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

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
        with self.session_factory() as session:
            command = session.exec(
                select(SyncCommand).where(SyncCommand.id == command_id, SyncCommand.user_id == user_id)
            ).first()
            if command is None:
                return
            command.attempts = attempts
            command.next_attempt_at = next_attempt_at
            command.last_error = (last_error or "")[:500] or None
            command.escalated = escalated
            session.add(command)
            session.commit()

    def delete(self, command_id: int, *, user_id: int) -> None:
        with self.session_factory() as session:
            command = session.exec(
                select(SyncCommand).where(SyncCommand.id == command_id, SyncCommand.user_id == user_id)
            ).first()
            if command:
                session.delete(command)
                session.commit()

    def delete_by_key(
        self, kind: str, activity_id: int, target_date: Optional[date], *, user_id: int
    ) -> int:
        with self.session_factory() as session:
            command = self._find_by_key(session, kind, activity_id, target_date, user_id)
            if command is None:
                return 0
            session.delete(command)
            session.commit()
            return 1

    def delete_for_activity(self, activity_id: int, *, user_id: int) -> int:
        with self.session_factory() as session:
            rows = session.exec(
                select(SyncCommand)
                .where(SyncCommand.user_id == user_id)
                .where(SyncCommand.activity_id == activity_id)
            ).all()
            for command in rows:
                session.delete(command)
            session.commit()
            return len(rows)


__all__ = ["SQLModelSyncCommandRepository"]
