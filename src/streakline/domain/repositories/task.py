"""Task repository protocol (the sync mirror target)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from ...models.task import Task


class TaskRepository(Protocol):
    """Repository for task board records."""

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[Task]:
        """Retrieve a task by ID."""
        ...

    def find_matching(self, title: str, due_date: date, *, user_id: int) -> list[Task]:
        """Return tasks whose title and due date match exactly."""
        ...

    def list_by_title(self, title: str, *, user_id: int) -> list[Task]:
        """Return every task with the given title."""
        ...

    def create_many(self, tasks: Iterable[Task], *, user_id: int) -> list[Task]:
        """Insert several tasks at once."""
        ...

    def set_completion(
        self,
        task_ids: Iterable[int],
        completed: bool,
        completed_at: Optional[datetime],
        *,
        user_id: int,
    ) -> int:
        """Write the completion fields for the given tasks; return rows touched."""
        ...
