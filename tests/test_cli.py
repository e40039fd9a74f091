"""Tests for the click command line interface."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from click.testing import CliRunner

from streakline.cli import main
from streakline.config import BaseConfig
from streakline.context import create_app_context
from streakline.services.pattern_calendar import WEEKDAYS_ONLY

MONDAY = date(2024, 1, 1)


@pytest.fixture
def cli_config(tmp_path, monkeypatch):
    """File backed database so separate commands share data."""
    monkeypatch.setenv("STREAKLINE_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("STREAKLINE_DEV_MODE", "false")
    return BaseConfig()


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def seeded_activity(cli_config):
    ctx = create_app_context(cli_config)
    state = ctx.habits.create_activity(
        "Gym", pattern=WEEKDAYS_ONLY, habit_days=10, start_date=MONDAY
    )
    for offset in range(4):
        ctx.habits.toggle_completion(state.id, MONDAY + timedelta(days=offset))
    ctx.dispose()
    return state.id


class TestEndDateCommand:
    def test_weekdays_goal_five(self, runner, cli_config):
        result = runner.invoke(
            main,
            ["end-date", "--start", "2024-01-01", "--goal", "5", "--days", "1,2,3,4,5"],
            obj={"config": cli_config},
        )
        assert result.exit_code == 0, result.output
        assert "2024-01-05" in result.output

    def test_every_day_by_default(self, runner, cli_config):
        result = runner.invoke(
            main, ["end-date", "--start", "2024-01-01", "--goal", "3"], obj={"config": cli_config}
        )
        assert "2024-01-03" in result.output

    def test_empty_schedule_is_an_error(self, runner, cli_config):
        result = runner.invoke(
            main,
            ["end-date", "--start", "2024-01-01", "--goal", "3", "--days", ","],
            obj={"config": cli_config},
        )
        assert result.exit_code != 0
        assert "no scheduled weekdays" in result.output

    def test_bad_date(self, runner, cli_config):
        result = runner.invoke(
            main, ["end-date", "--start", "01/01/2024", "--goal", "3"], obj={"config": cli_config}
        )
        assert result.exit_code != 0


class TestDatabaseCommands:
    def test_init_db(self, runner, cli_config):
        result = runner.invoke(main, ["init-db"], obj={"config": cli_config})
        assert result.exit_code == 0, result.output
        assert "Database ready" in result.output

    def test_streak(self, runner, cli_config, seeded_activity):
        result = runner.invoke(
            main,
            ["streak", str(seeded_activity), "--today", "2024-01-05"],
            obj={"config": cli_config},
        )
        assert result.exit_code == 0, result.output
        assert "current=4 longest=4" in result.output

    def test_streak_unknown_activity(self, runner, cli_config):
        result = runner.invoke(main, ["streak", "404"], obj={"config": cli_config})
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_momentum(self, runner, cli_config, seeded_activity):
        result = runner.invoke(
            main, ["momentum", "--today", "2024-01-05"], obj={"config": cli_config}
        )
        assert result.exit_code == 0, result.output
        assert "momentum=36" in result.output
        assert "daily=0 weekly=80 overall=40" in result.output

    def test_flush_sync_with_empty_outbox(self, runner, cli_config):
        result = runner.invoke(main, ["flush-sync"], obj={"config": cli_config})
        assert result.exit_code == 0, result.output
        assert "replayed=0 failed=0 escalated=0 discarded=0" in result.output
