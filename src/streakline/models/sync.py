"""Outbox rows holding explicit state writes awaiting replay."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class SyncKind(str, Enum):
    COMPLETION = "completion"
    TASK_MIRROR = "task_mirror"
    ARCHIVE = "archive"


class SyncCommand(SQLModel, table=True):
    """A "set state" command: the intended end state, never a toggle."""

    __tablename__: ClassVar[str] = "sync_command"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "activity_id", "target_date", name="uq_sync_command_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    kind: str = Field(nullable=False, max_length=16)
    activity_id: int = Field(nullable=False, index=True)
    title: str = Field(nullable=False, max_length=120)
    target_date: Optional[date] = Field(default=None)
    value: bool = Field(nullable=False)
    generation: int = Field(default=0, nullable=False)
    attempts: int = Field(default=0, nullable=False)
    next_attempt_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    last_error: Optional[str] = Field(default=None, max_length=500)
    escalated: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def key(self) -> tuple[str, int, Optional[date]]:
        return (self.kind, self.activity_id, self.target_date)
