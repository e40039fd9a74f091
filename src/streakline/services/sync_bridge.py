"""Mirror habit completion state into task board records.

Tasks are linked to an activity by value: a task whose title equals the
activity name and whose due date equals the completion date. Renaming an
activity therefore detaches its existing tasks. The mirror is best effort;
the habit ledger stays the source of truth.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.task import TaskRepository
from ..errors import SyncWriteFailed
from ..logging_config import get_logger
from ..models.activity import Activity
from ..models.task import HABIT_TAG, Task
from .ledger import CompletionLedger

logger = get_logger(__name__)


class SyncBridge:
    """Writes task completion fields to match the habit ledger."""

    def __init__(
        self,
        task_repo: TaskRepository,
        *,
        user_id: int,
        now_provider: Callable[[], datetime],
    ):
        self.task_repo = task_repo
        self.user_id = user_id
        self.now_provider = now_provider

    def mirror(self, title: str, day: date, completed: bool) -> int:
        """Set matching tasks to ``completed``; return how many were touched.

        No matching task means nothing to do; tasks are never created here.

        Raises:
            SyncWriteFailed: the task store rejected the read or the write.
        """

        try:
            matches = self.task_repo.find_matching(title, day, user_id=self.user_id)
            if not matches:
                return 0
            completed_at = self.now_provider() if completed else None
            touched = self.task_repo.set_completion(
                [t.id for t in matches if t.id is not None],
                completed,
                completed_at,
                user_id=self.user_id,
            )
        except SQLAlchemyError as exc:
            raise SyncWriteFailed(title, day, str(exc)) from exc

        logger.info(
            "Mirrored habit completion to tasks",
            extra={"title": title, "day": day.isoformat(), "completed": completed, "tasks": touched},
        )
        return touched

    def resync(self, title: str, ledger: CompletionLedger) -> int:
        """Re-mirror every dated task carrying ``title`` from the ledger."""

        try:
            tasks = self.task_repo.list_by_title(title, user_id=self.user_id)
        except SQLAlchemyError as exc:
            raise SyncWriteFailed(title, None, str(exc)) from exc

        touched = 0
        for due_date in sorted({t.due_date for t in tasks if t.due_date is not None}):
            touched += self.mirror(title, due_date, ledger.is_completed(due_date))
        return touched

    def create_companion_tasks(
        self,
        activity: Activity,
        dates: Iterable[date],
        *,
        due_time: Optional[str] = None,
        priority: str = "medium",
    ) -> list[Task]:
        """Create one task per scheduled date, titled after the activity."""

        tasks = [
            Task(
                user_id=self.user_id,
                title=activity.name,
                description=activity.description or None,
                due_date=day,
                due_time=due_time,
                priority=priority.lower(),
                tags=[HABIT_TAG],
            )
            for day in dates
        ]
        if not tasks:
            return []
        created = self.task_repo.create_many(tasks, user_id=self.user_id)
        logger.info(
            "Created companion tasks",
            extra={"activity_id": activity.id, "count": len(created)},
        )
        return created


__all__ = ["SyncBridge"]
