"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelActivityRepository,
    SQLModelSyncCommandRepository,
    SQLModelTaskRepository,
)
from .logging_config import get_logger
from .services.habits import HabitService
from .services.notifications import Notifier

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Centralized application context with repositories and the habit service."""

    # Configuration
    config: BaseConfig
    engine: Engine

    # Session factory
    session_factory: Callable[[], Session]

    # Repositories
    activity_repo: SQLModelActivityRepository
    task_repo: SQLModelTaskRepository
    sync_repo: SQLModelSyncCommandRepository

    habits: HabitService
    user_id: int
    dev_mode: bool = False

    def dispose(self) -> None:
        self.engine.dispose()


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    user_id: int = 1,
    notifier: Optional[Notifier] = None,
    load: bool = True,
) -> AppContext:
    """Create and initialize the application context.

    Authentication lives outside this package, so the caller names the user
    whose activities the service should own.
    """

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    activity_repo = SQLModelActivityRepository(session_factory)
    task_repo = SQLModelTaskRepository(session_factory)
    sync_repo = SQLModelSyncCommandRepository(session_factory)

    habits = HabitService(
        activity_repo=activity_repo,
        task_repo=task_repo,
        sync_repo=sync_repo,
        user_id=user_id,
        config=config,
        notifier=notifier,
    )
    if load:
        habits.load()

    logger.info("Application context ready", extra={"user_id": user_id, "dev_mode": config.DEV_MODE})
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        activity_repo=activity_repo,
        task_repo=task_repo,
        sync_repo=sync_repo,
        habits=habits,
        user_id=user_id,
        dev_mode=config.DEV_MODE,
    )
