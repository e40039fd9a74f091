"""SQLModel table exports."""

from .activity import Activity, CompletionRecord
from .sync import SyncCommand, SyncKind
from .task import HABIT_TAG, Task, TaskStatus

__all__ = [
    "Activity",
    "CompletionRecord",
    "HABIT_TAG",
    "SyncCommand",
    "SyncKind",
    "Task",
    "TaskStatus",
]
