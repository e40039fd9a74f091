"""Pytest configuration and shared fixtures for Streakline tests.

This module provides database fixtures, data factories, a controllable clock
and test doubles for the notifier and for storage that fails on demand.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy.exc import OperationalError

from streakline.config import TestConfig
from streakline.infra.database import create_db_engine, create_session_factory, init_database
from streakline.infra.repositories import (
    SQLModelActivityRepository,
    SQLModelSyncCommandRepository,
    SQLModelTaskRepository,
)
from streakline.logging_config import ROOT_LOGGER_NAME
from streakline.models import HABIT_TAG, Activity, SyncCommand, Task
from streakline.services.habits import HabitService

USER_ID = 1

# Friday; 2024-01-01 is the Monday of the same week.
FIXED_TODAY = date(2024, 1, 5)


# =============================================================================
# Configuration and database
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep data files and env overrides away from the developer's machine."""
    monkeypatch.setenv("STREAKLINE_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "STREAKLINE_DATABASE_URL",
        "STREAKLINE_DEV_MODE",
        "STREAKLINE_MOMENTUM_WEIGHTS",
        "STREAKLINE_END_DATE_HORIZON_DAYS",
        "STREAKLINE_SYNC_MAX_ATTEMPTS",
        "STREAKLINE_SYNC_RETRY_BASE_SECONDS",
        "STREAKLINE_SYNC_RETRY_MAX_SECONDS",
        "STREAKLINE_SYNC_FLUSH_INTERVAL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so log files do not leak between tests."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def test_config():
    return TestConfig()


@pytest.fixture
def db_engine(test_config):
    """Isolated in-memory SQLite database with all tables created."""
    engine = create_db_engine(test_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def activity_repo(session_factory):
    return SQLModelActivityRepository(session_factory)


@pytest.fixture
def task_repo(session_factory):
    return SQLModelTaskRepository(session_factory)


@pytest.fixture
def sync_repo(session_factory):
    return SQLModelSyncCommandRepository(session_factory)


# =============================================================================
# Clock and test doubles
# =============================================================================


class FixedClock:
    """Clock the tests move by hand."""

    def __init__(self, today: date):
        self.current = datetime(today.year, today.month, today.day, 12, 0, tzinfo=timezone.utc)

    def today(self) -> date:
        return self.current.date()

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)


class RecordingNotifier:
    """Collects notifications instead of delivering them."""

    def __init__(self):
        self.completed: list[Activity] = []
        self.failed: list[SyncCommand] = []

    def goal_completed(self, activity: Activity) -> None:
        self.completed.append(activity)

    def sync_failed(self, command: SyncCommand) -> None:
        self.failed.append(command)


def _storage_error(statement: str) -> OperationalError:
    return OperationalError(statement, {}, Exception("database is locked"))


class FailingTaskRepository:
    """Task repository whose writes fail while ``failing`` is set."""

    def __init__(self, inner: SQLModelTaskRepository):
        self.inner = inner
        self.failing = False
        self.write_calls = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def set_completion(self, task_ids, completed, completed_at, *, user_id):
        self.write_calls += 1
        if self.failing:
            raise _storage_error("UPDATE task")
        return self.inner.set_completion(task_ids, completed, completed_at, user_id=user_id)


class FailingActivityRepository:
    """Activity repository whose completion, archive and edit writes fail on demand."""

    def __init__(self, inner: SQLModelActivityRepository):
        self.inner = inner
        self.failing = False

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def set_completion(self, activity_id, day, completed, *, user_id):
        if self.failing:
            raise _storage_error("INSERT INTO habit_completion")
        return self.inner.set_completion(activity_id, day, completed, user_id=user_id)

    def set_archived(self, activity_id, archived, archived_at, *, user_id):
        if self.failing:
            raise _storage_error("UPDATE habit")
        return self.inner.set_archived(activity_id, archived, archived_at, user_id=user_id)

    def update(self, activity, *, user_id):
        if self.failing:
            raise _storage_error("UPDATE habit")
        return self.inner.update(activity, user_id=user_id)


@pytest.fixture
def clock():
    return FixedClock(FIXED_TODAY)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_task_repo(task_repo):
    return FailingTaskRepository(task_repo)


@pytest.fixture
def failing_activity_repo(activity_repo):
    return FailingActivityRepository(activity_repo)


# =============================================================================
# Service and factories
# =============================================================================


@pytest.fixture
def habit_service(test_config, failing_activity_repo, failing_task_repo, sync_repo, notifier, clock):
    """Habit service over healthy storage; flip ``failing`` on the repos to break it."""
    return HabitService(
        activity_repo=failing_activity_repo,
        task_repo=failing_task_repo,
        sync_repo=sync_repo,
        user_id=USER_ID,
        config=test_config,
        notifier=notifier,
        today_provider=clock.today,
        now_provider=clock.now,
    )


@pytest.fixture
def activity_factory(activity_repo):
    """Insert activities straight into storage."""

    def factory(
        *,
        name: str = "Morning Run",
        start_date: date = date(2024, 1, 1),
        target_days: Optional[list[int]] = None,
        habit_days: int = 30,
        is_archived: bool = False,
        user_id: int = USER_ID,
    ) -> Activity:
        activity = Activity(
            user_id=user_id,
            name=name,
            start_date=start_date,
            target_days=target_days,
            habit_days=habit_days,
            is_archived=is_archived,
        )
        return activity_repo.create(activity, user_id=user_id)

    return factory


@pytest.fixture
def task_factory(task_repo):
    """Insert task board records straight into storage."""

    def factory(
        *,
        title: str = "Morning Run",
        due_date: Optional[date] = FIXED_TODAY,
        tags: Optional[list[str]] = None,
        is_completed: bool = False,
        user_id: int = USER_ID,
    ) -> Task:
        task = Task(
            user_id=user_id,
            title=title,
            due_date=due_date,
            tags=[HABIT_TAG] if tags is None else tags,
            is_completed=is_completed,
        )
        return task_repo.create_many([task], user_id=user_id)[0]

    return factory
