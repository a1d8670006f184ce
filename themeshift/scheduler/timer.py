"""Interval timer for adaptation ticks, backed by APScheduler's AsyncIOScheduler.

Ticks run as coroutines on the session's own event loop. A tick that is
still running when the next one is due is coalesced, never stacked.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[object]]


class HeartbeatTimer:
    def __init__(self) -> None:
        self._apscheduler = AsyncIOScheduler()
        self._intervals: dict[str, float] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def job_ids(self) -> list[str]:
        return sorted(self._intervals)

    def interval_of(self, schedule_id: str) -> float:
        return self._intervals[schedule_id]

    def next_run_time(self, schedule_id: str) -> datetime | None:
        job = self._apscheduler.get_job(schedule_id)
        # Pending jobs have no next_run_time until the scheduler starts.
        return getattr(job, "next_run_time", None)

    def add_heartbeat(self, name: str, interval_seconds: float, callback: TickCallback) -> str:
        """Run ``callback`` every ``interval_seconds``; returns ``heartbeat:<name>``.

        Raises ValueError for a non-positive interval or a name already in use.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        schedule_id = f"heartbeat:{name}"
        if schedule_id in self._intervals:
            raise ValueError(f"schedule '{schedule_id}' already registered")

        self._apscheduler.add_job(
            _guarded(callback, schedule_id),
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=schedule_id,
            max_instances=1,
            coalesce=True,
        )
        self._intervals[schedule_id] = interval_seconds
        logger.info("Tick %s scheduled every %.3fs", schedule_id, interval_seconds)
        return schedule_id

    def remove_schedule(self, schedule_id: str) -> None:
        if self._intervals.pop(schedule_id, None) is None:
            raise KeyError(f"unknown schedule: {schedule_id}")
        try:
            self._apscheduler.remove_job(schedule_id)
        except JobLookupError:
            logger.debug("Tick %s was already gone from the job store", schedule_id)
        logger.info("Tick %s cancelled", schedule_id)

    def start(self) -> None:
        """Begin firing ticks. Must run inside an event loop; repeat calls are ignored."""
        if self._running:
            return
        self._apscheduler.start()
        self._running = True
        logger.info("Heartbeat timer running with %d ticks", len(self._intervals))

    def stop(self) -> None:
        """Cancel every tick and shut the timer down; repeat calls are ignored."""
        if not self._running:
            return
        self._apscheduler.remove_all_jobs()
        # AsyncIOScheduler shuts down on a later loop step; a restart needs a new instance.
        self._apscheduler.shutdown(wait=False)
        self._apscheduler = AsyncIOScheduler()
        self._intervals.clear()
        self._running = False
        logger.info("Heartbeat timer stopped")


def _guarded(callback: TickCallback, schedule_id: str) -> Callable[[], Awaitable[None]]:
    async def _run() -> None:
        try:
            await callback()
        except Exception:
            logger.exception("Tick %s failed; the timer keeps running", schedule_id)

    return _run


__all__ = ["HeartbeatTimer", "TickCallback"]
