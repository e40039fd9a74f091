"""Command line entry points for Streakline."""

from __future__ import annotations

from datetime import date, datetime

import click

from .config import BaseConfig
from .context import create_app_context
from .errors import StreakLineError
from .infra.database import bootstrap_database
from .logging_config import setup_logging
from .services.end_date import resolve_end_date
from .services.pattern_calendar import pattern_from_target_days


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


def _parse_days(value: str | None) -> list[int] | None:
    if value is None or value.strip().lower() in {"", "all", "daily"}:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise click.BadParameter(f"expected weekday codes such as 1,3,5, got {value!r}") from exc


@click.group()
@click.option("--user-id", type=int, default=1, show_default=True, help="Owner of the activities")
@click.pass_context
def main(ctx: click.Context, user_id: int) -> None:
    """Habit scheduling and progress tools."""

    ctx.ensure_object(dict)
    ctx.obj.setdefault("config", BaseConfig())
    ctx.obj["user_id"] = user_id
    setup_logging(ctx.obj["config"])


def _app(ctx: click.Context):
    return create_app_context(ctx.obj["config"], user_id=ctx.obj["user_id"])


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""

    config: BaseConfig = ctx.obj["config"]
    engine, _ = bootstrap_database(config)
    engine.dispose()
    click.echo(f"Database ready: {config.DATABASE_URL}")


@main.command("end-date")
@click.option("--start", "start_value", required=True, help="First day, YYYY-MM-DD")
@click.option("--goal", type=int, required=True, help="Number of occurrences to reach")
@click.option("--days", default=None, help="Weekday codes 1-7 (Monday=1), comma separated; default every day")
@click.pass_context
def end_date(ctx: click.Context, start_value: str, goal: int, days: str | None) -> None:
    """Print the date the goal is reached, without touching the database."""

    start = _parse_date(start_value)
    if start is None:
        raise click.BadParameter("a start date is required", param_hint="--start")
    try:
        pattern = pattern_from_target_days(_parse_days(days))
        result = resolve_end_date(
            start, pattern, goal, horizon_days=ctx.obj["config"].END_DATE_HORIZON_DAYS
        )
    except (StreakLineError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(result.isoformat())


@main.command("streak")
@click.argument("activity_id", type=int)
@click.option("--today", "today_value", default=None, help="Evaluate as of this day, YYYY-MM-DD")
@click.pass_context
def streak(ctx: click.Context, activity_id: int, today_value: str | None) -> None:
    """Print the current and longest streak of an activity."""

    app = _app(ctx)
    try:
        today = _parse_date(today_value)
        current = app.habits.compute_streak(activity_id, today=today)
        longest = app.habits.longest_streak(activity_id, today=today)
    except StreakLineError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        app.dispose()
    click.echo(f"current={current} longest={longest}")


@main.command("momentum")
@click.option("--activity-id", type=int, default=None, help="Limit to one activity")
@click.option("--today", "today_value", default=None, help="Evaluate as of this day, YYYY-MM-DD")
@click.pass_context
def momentum(ctx: click.Context, activity_id: int | None, today_value: str | None) -> None:
    """Print the momentum index and its components."""

    app = _app(ctx)
    try:
        report = app.habits.compute_momentum(activity_id, today=_parse_date(today_value))
    except StreakLineError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        app.dispose()
    click.echo(f"momentum={report.momentum}")
    click.echo(f"daily={report.daily_progress} weekly={report.weekly_progress} overall={report.overall_progress}")
    click.echo(f"completed={report.total_completed} remaining={report.total_remaining}")


@main.command("flush-sync")
@click.pass_context
def flush_sync(ctx: click.Context) -> None:
    """Replay queued sync writes that are due."""

    app = _app(ctx)
    try:
        report = app.habits.flush_pending_sync()
    finally:
        app.dispose()
    click.echo(
        f"replayed={report.replayed} failed={report.failed} "
        f"escalated={report.escalated} discarded={report.discarded}"
    )


if __name__ == "__main__":  # pragma: no cover
    main()
