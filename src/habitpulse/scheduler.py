"""APScheduler wiring for the nightly streak snapshot and the cache purge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .lib.dates import today_key

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger("habitpulse.scheduler")

SNAPSHOT_JOB_ID = "daily_streak_snapshot"
PURGE_JOB_ID = "stats_cache_purge"

_TRIGGERS = {"cron": CronTrigger, "interval": IntervalTrigger, "date": DateTrigger}


class BackgroundScheduler:
    """Owns one APScheduler instance bound to an :class:`AppContext`.

    Nothing runs until :meth:`start`; the two job bodies are plain methods so
    the CLI and tests can invoke them synchronously.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self._aps: APScheduler | None = None

    @property
    def running(self) -> bool:
        return self._aps is not None

    def start(self) -> None:
        if self._aps is not None:
            logger.warning("Scheduler already running")
            return

        cfg = self.ctx.config
        self._aps = APScheduler()
        self._register(
            self.run_daily_snapshot,
            CronTrigger(hour=cfg.SNAPSHOT_HOUR, minute=cfg.SNAPSHOT_MINUTE),
            SNAPSHOT_JOB_ID,
            "Daily Streak Snapshot",
        )
        self._register(
            self.run_cache_purge,
            IntervalTrigger(minutes=cfg.CACHE_PURGE_MINUTES),
            PURGE_JOB_ID,
            "Stats Cache Purge",
        )
        self._aps.start()
        logger.info(
            "Scheduler started: snapshot at %02d:%02d, cache purge every %d min",
            cfg.SNAPSHOT_HOUR,
            cfg.SNAPSHOT_MINUTE,
            cfg.CACHE_PURGE_MINUTES,
        )

    def stop(self) -> None:
        """Shut down, waiting for a job that is mid-run."""
        if self._aps is None:
            return
        aps, self._aps = self._aps, None
        aps.shutdown(wait=True)
        logger.info("Scheduler stopped")

    # Job bodies

    def run_daily_snapshot(self, snapshot_date: str | None = None) -> None:
        """Archive every user's streaks for *snapshot_date* (default: local today)."""
        day = snapshot_date or today_key()
        try:
            result = self.ctx.archiver.snapshot_all_users(snapshot_date=day)
        except Exception:
            logger.exception("Daily snapshot job failed", extra={"snapshot_date": day})
            return
        if not result.ok:
            logger.warning(
                "Daily snapshot finished with %d failures",
                len(result.failed),
                extra={"snapshot_date": day},
            )

    def run_cache_purge(self) -> None:
        try:
            self.ctx.stats.purge_expired()
        except Exception:
            logger.exception("Stats cache purge failed")

    # Ad-hoc jobs

    def add_job(
        self,
        func: Callable,
        trigger: str,
        *,
        job_id: str,
        name: str | None = None,
        **trigger_args,
    ) -> None:
        """Schedule *func* under a ``cron``, ``interval`` or ``date`` trigger.

        Ignored with a warning when the scheduler has not been started.

        Args:
            func: Callable to run
            trigger: ``cron``, ``interval`` or ``date``
            job_id: Unique job id; an existing job with this id is replaced
            name: Human-readable name (defaults to ``job_id``)
            **trigger_args: Passed to the APScheduler trigger

        Raises:
            ValueError: on an unknown trigger type
        """
        trigger_cls = _TRIGGERS.get(trigger)
        if trigger_cls is None:
            raise ValueError(f"Unknown trigger type: {trigger}")
        if self._aps is None:
            logger.warning("Cannot add job %s: scheduler not started", job_id)
            return
        self._register(func, trigger_cls(**trigger_args), job_id, name or job_id)

    def remove_job(self, job_id: str) -> None:
        if self._aps is not None:
            self._aps.remove_job(job_id)
            logger.info("Removed job %s", job_id)

    def job_ids(self) -> list[str]:
        return [job.id for job in self._aps.get_jobs()] if self._aps is not None else []

    def _register(self, func: Callable, trigger, job_id: str, name: str) -> None:
        self._aps.add_job(func=func, trigger=trigger, id=job_id, name=name, replace_existing=True)
        logger.debug("Registered job %s", job_id)


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Build a scheduler for *ctx*.

    Args:
        ctx: Application context whose archiver and stats service the jobs use
        auto_start: Start it (and register both jobs) immediately
    """
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler


__all__ = ["BackgroundScheduler", "PURGE_JOB_ID", "SNAPSHOT_JOB_ID", "create_scheduler"]
