"""Database infrastructure: engine, schema and session helpers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Tuple

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig


def create_db_engine(config: BaseConfig):
    """Create SQLModel engine from configuration."""
    engine_options = config.sqlalchemy_engine_options()
    if config.DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
        # One shared connection so every session sees the same in-memory database.
        engine_options["poolclass"] = StaticPool
    engine = create_engine(config.DATABASE_URL, **engine_options)

    if config.DATABASE_URL.startswith("sqlite"):
        pragmas = dict(config.SQLITE_PRAGMAS)

        @event.listens_for(engine, "connect")
        def _apply_pragmas(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            for name, value in pragmas.items():
                cursor.execute(f"PRAGMA {name}={value}")
            cursor.close()

    return engine


def init_database(engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine):
    """Create a session factory function."""

    def factory():
        """Create a new transactional session scope."""
        return session_scope(engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by application startup, the CLI and tests to ensure consistent engine
    options and session configuration. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
