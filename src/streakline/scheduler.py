"""Background task scheduler for the sync outbox."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("streakline.scheduler")

FLUSH_JOB_ID = "sync_outbox_flush"


class BackgroundScheduler:
    """Runs periodic maintenance such as replaying queued sync writes."""

    def __init__(self, ctx: AppContext, *, factory: Callable[[], APScheduler] = APScheduler):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context holding the habit service and config
            factory: Builds the underlying APScheduler instance
        """
        self.ctx = ctx
        self.factory = factory
        self.scheduler: Optional[APScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = self.factory()
        interval = self.ctx.config.SYNC_FLUSH_INTERVAL_SECONDS
        self.scheduler.add_job(
            func=self.flush_outbox,
            trigger=IntervalTrigger(seconds=interval),
            id=FLUSH_JOB_ID,
            name="Sync Outbox Flush",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Background scheduler started", extra={"flush_interval_seconds": interval})

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def flush_outbox(self) -> None:
        """Replay due sync commands; storage errors are logged and retried next run."""
        try:
            report = self.ctx.habits.flush_pending_sync()
        except SQLAlchemyError as exc:
            logger.error(f"Sync outbox flush failed: {exc}", exc_info=True)
            return
        if report.escalated:
            logger.warning("Sync commands escalated", extra={"escalated": report.escalated})

    def job_ids(self) -> list[str]:
        if self.scheduler is None:
            return []
        return [job.id for job in self.scheduler.get_jobs()]


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Whether to start the scheduler immediately

    Returns:
        BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
