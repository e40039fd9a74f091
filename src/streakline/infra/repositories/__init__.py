"""Concrete repository implementations using SQLModel."""

from .activity import SQLModelActivityRepository
from .sync import SQLModelSyncCommandRepository
from .task import SQLModelTaskRepository

__all__ = [
    "SQLModelActivityRepository",
    "SQLModelSyncCommandRepository",
    "SQLModelTaskRepository",
]
