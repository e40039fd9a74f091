"""SQLModel implementation of the activity repository."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.activity import Activity, CompletionRecord


class SQLModelActivityRepository:
    """SQLModel-based activity repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, activity_id: int, *, user_id: int) -> Optional[Activity]:
        """Retrieve an activity by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Activity]:
        """Retrieve the first activity with an exact name."""
        with self.session_factory() as session:
            statement = (
                select(Activity)
                .where(Activity.name == name, Activity.user_id == user_id)
                .order_by(Activity.id)  # type: ignore[arg-type]
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, include_archived: bool = True) -> list[Activity]:
        """List activities, optionally skipping archived ones."""
        with self.session_factory() as session:
            statement = (
                select(Activity).where(Activity.user_id == user_id).order_by(Activity.id)  # type: ignore[arg-type]
            )
            if not include_archived:
                statement = statement.where(Activity.is_archived == False)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, activity: Activity, *, user_id: int) -> Activity:
        """Create a new activity."""
        with self.session_factory() as session:
            activity.user_id = user_id
            session.add(activity)
            session.commit()
            session.refresh(activity)
            session.expunge(activity)
            return activity

    def update(self, activity: Activity, *, user_id: int) -> Activity:
        """Update an existing activity."""
        with self.session_factory() as session:
            activity.user_id = user_id
            merged = session.merge(activity)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, activity_id: int, *, user_id: int) -> None:
        """Delete an activity together with its completion records."""
        with self.session_factory() as session:
            completions = session.exec(
                select(CompletionRecord)
                .where(CompletionRecord.user_id == user_id)
                .where(CompletionRecord.habit_id == activity_id)
            ).all()
            for record in completions:
                session.delete(record)
            session.flush()

            activity = session.exec(
                select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
            ).first()
            if activity:
                session.delete(activity)
            session.commit()

    def set_archived(
        self, activity_id: int, archived: bool, archived_at: Optional[datetime], *, user_id: int
    ) -> None:
        """Write the archived flag and timestamp."""
        with self.session_factory() as session:
            activity = session.exec(
                select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
            ).first()
            if activity is None:
                return
            activity.is_archived = archived
            activity.archived_at = archived_at
            session.add(activity)
            session.commit()

    # Completion operations
    def list_completions(self, activity_id: int, *, user_id: int) -> list[date]:
        """Return completed dates for one activity, ascending."""
        with self.session_factory() as session:
            statement = (
                select(CompletionRecord.completed_date)
                .where(CompletionRecord.user_id == user_id)
                .where(CompletionRecord.habit_id == activity_id)
                .order_by(CompletionRecord.completed_date)  # type: ignore[arg-type]
            )
            return list(session.exec(statement).all())

    def list_all_completions(self, *, user_id: int) -> dict[int, list[date]]:
        """Return completed dates keyed by activity id."""
        with self.session_factory() as session:
            statement = (
                select(CompletionRecord.habit_id, CompletionRecord.completed_date)
                .where(CompletionRecord.user_id == user_id)
                .order_by(CompletionRecord.completed_date)  # type: ignore[arg-type]
            )
            grouped: dict[int, list[date]] = defaultdict(list)
            for habit_id, completed_date in session.exec(statement).all():
                grouped[habit_id].append(completed_date)
            return dict(grouped)

    def set_completion(self, activity_id: int, day: date, completed: bool, *, user_id: int) -> None:
        """Make the stored state for ``day`` equal ``completed``.

        Replaying the same call is harmless, which is what retries rely on.
        """
        with self.session_factory() as session:
            existing = session.exec(
                select(CompletionRecord)
                .where(CompletionRecord.user_id == user_id)
                .where(CompletionRecord.habit_id == activity_id)
                .where(CompletionRecord.completed_date == day)
            ).first()

            if completed and existing is None:
                session.add(
                    CompletionRecord(habit_id=activity_id, completed_date=day, user_id=user_id)
                )
                session.commit()
            elif not completed and existing is not None:
                session.delete(existing)
                session.commit()


__all__ = ["SQLModelActivityRepository"]
