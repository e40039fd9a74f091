"""Recurring activity (habit) data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Activity(SQLModel, table=True):
    """A user-defined habit with a weekly schedule and a completion goal."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120, index=True)
    description: str = Field(default="", max_length=500)
    # Weekday codes, 1 = Monday ... 7 = Sunday; None means every day.
    target_days: Optional[list[int]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    habit_days: int = Field(default=30, nullable=False)
    start_date: date = Field(nullable=False, index=True)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)
    is_archived: bool = Field(default=False, nullable=False, index=True)
    archived_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class CompletionRecord(SQLModel, table=True):
    """Marks an activity as done on a calendar day; absence means not done."""

    __tablename__: ClassVar[str] = "habit_completion"

    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    completed_date: date = Field(primary_key=True, index=True)
    user_id: int = Field(nullable=False, index=True)
