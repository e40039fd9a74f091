"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on blanks."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_weights(name: str, default: tuple[int, int, int]) -> tuple[int, int, int]:
    """Parse a comma separated daily,weekly,overall weight triple."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 3:
        raise ValueError(f"{name} must hold three comma separated integers, got {value!r}")
    try:
        daily, weekly, overall = (int(p) for p in parts)
    except ValueError as exc:
        raise ValueError(f"{name} must hold three comma separated integers, got {value!r}") from exc
    if min(daily, weekly, overall) < 0 or daily + weekly + overall != 100:
        raise ValueError(f"{name} weights must be non-negative and sum to 100, got {value!r}")
    return daily, weekly, overall


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Streakline"
    DB_FILENAME = "streakline.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    # Product tunables pending confirmation; kept at the values users see today.
    DEFAULT_MOMENTUM_WEIGHTS = (40, 30, 30)
    DEFAULT_END_DATE_HORIZON_DAYS = 3650
    DEFAULT_HABIT_DAYS = 30

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("STREAKLINE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("STREAKLINE_DATABASE_URL", self._build_sqlite_url())
        self.MOMENTUM_WEIGHTS = _env_weights(
            "STREAKLINE_MOMENTUM_WEIGHTS", self.DEFAULT_MOMENTUM_WEIGHTS
        )
        self.END_DATE_HORIZON_DAYS = _env_int(
            "STREAKLINE_END_DATE_HORIZON_DAYS", self.DEFAULT_END_DATE_HORIZON_DAYS
        )
        self.SYNC_MAX_ATTEMPTS = _env_int("STREAKLINE_SYNC_MAX_ATTEMPTS", 5)
        self.SYNC_RETRY_BASE_SECONDS = _env_int("STREAKLINE_SYNC_RETRY_BASE_SECONDS", 30)
        self.SYNC_RETRY_MAX_SECONDS = _env_int("STREAKLINE_SYNC_RETRY_MAX_SECONDS", 3600)
        self.SYNC_FLUSH_INTERVAL_SECONDS = _env_int("STREAKLINE_SYNC_FLUSH_INTERVAL_SECONDS", 60)
        if self.END_DATE_HORIZON_DAYS < 1:
            raise ValueError("STREAKLINE_END_DATE_HORIZON_DAYS must be positive.")
        if self.SYNC_MAX_ATTEMPTS < 1:
            raise ValueError("STREAKLINE_SYNC_MAX_ATTEMPTS must be positive.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("STREAKLINE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            # The outbox job touches the engine from APScheduler's worker thread.
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration: verbose console logging."""

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True


class TestConfig(BaseConfig):
    """Configuration for the test suite: in-memory database, quiet console."""

    __test__ = False

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = False
        self.DATABASE_URL = "sqlite://"
