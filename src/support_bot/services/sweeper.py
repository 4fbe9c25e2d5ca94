"""APScheduler-driven sweep of idle sessions."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from support_bot.core.session import SessionStore
from support_bot.log import get_logger
from support_bot.services.base import Service

logger = get_logger(__name__)

SWEEP_JOB_ID = "session_sweep"


class SessionSweeper(Service):
    """Periodically evicts sessions idle longer than ``idle_timeout``.

    Holds no state beyond its schedule; a failed sweep is logged and the
    next tick runs as usual.
    """

    def __init__(
        self,
        store: SessionStore,
        idle_timeout: timedelta = timedelta(hours=1),
        interval: timedelta = timedelta(minutes=5),
        timezone: str = "UTC",
    ):
        if idle_timeout <= timedelta(0) or interval <= timedelta(0):
            raise ValueError("idle_timeout and interval must be positive")
        self._store = store
        self._idle_timeout = idle_timeout
        self._interval = interval
        self._timezone = timezone
        self._scheduler = AsyncIOScheduler(timezone=timezone)
        self._last_removed = 0

    @property
    def service_name(self) -> str:
        return "session_sweeper"

    @property
    def idle_timeout(self) -> timedelta:
        return self._idle_timeout

    @property
    def interval(self) -> timedelta:
        return self._interval

    @property
    def last_removed(self) -> int:
        return self._last_removed

    async def start(self) -> None:
        self._scheduler.add_job(
            self.run_once,
            IntervalTrigger(seconds=self._interval.total_seconds(), timezone=self._timezone),
            id=SWEEP_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "session_sweeper_started",
            interval_s=self._interval.total_seconds(),
            idle_timeout_s=self._idle_timeout.total_seconds(),
        )

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            # AsyncIOScheduler may defer the shutdown to the loop; let it run
            await asyncio.sleep(0)
        logger.info("session_sweeper_stopped")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    async def run_once(self) -> int:
        """Run one sweep. Returns the number of sessions removed (0 on failure)."""
        try:
            removed = self._store.sweep_expired(self._idle_timeout)
        except Exception as e:
            logger.error("session_sweep_failed", error=str(e), exc_info=True)
            return 0
        self._last_removed = removed
        logger.debug("session_sweep_done", removed=removed, remaining=len(self._store))
        return removed

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "last_removed": self._last_removed, "job": self.job_info()}

    def job_info(self) -> dict[str, Any] | None:
        """Describe the scheduled sweep job, or None when not scheduled."""
        job = self._scheduler.get_job(SWEEP_JOB_ID)
        if job is None:
            return None
        next_run = getattr(job, "next_run_time", None)
        return {
            "id": job.id,
            "next_run_time": str(next_run) if next_run else None,
            "trigger": str(job.trigger),
        }
