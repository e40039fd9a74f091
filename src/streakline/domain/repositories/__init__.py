"""Repository protocol definitions for domain layer."""

from .activity import ActivityRepository
from .sync import SyncCommandRepository
from .task import TaskRepository

__all__ = [
    "ActivityRepository",
    "SyncCommandRepository",
    "TaskRepository",
]
