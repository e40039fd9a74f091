"""SQLModel implementation of the task repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.task import Task, TaskStatus


class SQLModelTaskRepository:
    """SQLModel-based task repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[Task]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Task).where(Task.id == task_id, Task.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def find_matching(self, title: str, due_date: date, *, user_id: int) -> list[Task]:
        """Match by value: same title, same due date."""
        with self.session_factory() as session:
            statement = (
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.title == title)
                .where(Task.due_date == due_date)
                .order_by(Task.id)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_by_title(self, title: str, *, user_id: int) -> list[Task]:
        with self.session_factory() as session:
            statement = (
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.title == title)
                .order_by(Task.due_date, Task.id)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create_many(self, tasks: Iterable[Task], *, user_id: int) -> list[Task]:
        with self.session_factory() as session:
            created = []
            for task in tasks:
                task.user_id = user_id
                session.add(task)
                created.append(task)
            session.commit()
            for task in created:
                session.refresh(task)
            session.expunge_all()
            return created

    def set_completion(
        self,
        task_ids: Iterable[int],
        completed: bool,
        completed_at: Optional[datetime],
        *,
        user_id: int,
    ) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        with self.session_factory() as session:
            rows = session.exec(
                select(Task).where(Task.user_id == user_id).where(Task.id.in_(ids))  # type: ignore[union-attr]
            ).all()
            for task in rows:
                task.is_completed = completed
                task.completed_at = completed_at if completed else None
                task.status = (TaskStatus.COMPLETED if completed else TaskStatus.ONGOING).value
                session.add(task)
            session.commit()
            return len(rows)


__all__ = ["SQLModelTaskRepository"]
