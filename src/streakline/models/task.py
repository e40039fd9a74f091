"""External task records mirrored from habit completions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

HABIT_TAG = "Habit"


class TaskStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"


class Task(SQLModel, table=True):
    """A to-do entry on the task board; habit companions share the habit's name."""

    __tablename__: ClassVar[str] = "task"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    title: str = Field(nullable=False, max_length=120, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    due_date: Optional[date] = Field(default=None, index=True)
    due_time: Optional[str] = Field(default=None, max_length=5)
    priority: str = Field(default="medium", max_length=16)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_completed: bool = Field(default=False, nullable=False)
    completed_at: Optional[datetime] = Field(default=None)
    status: str = Field(default=TaskStatus.ONGOING.value, max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_habit_companion(self) -> bool:
        return HABIT_TAG in (self.tags or [])
