"""Timer primitives the engine schedules against.

``TimerService`` is the narrow contract: arm a repeating or one-shot callback,
cancel it by handle. ``SchedulerTimerService`` implements it on APScheduler's
``AsyncIOScheduler``. Callbacks are wrapped as coroutines so the asyncio
executor runs them on the event loop itself; the engine is single-threaded
and must never see a callback from the thread pool.

Cancellation is final: a handle carries a ``cancelled`` flag that is checked
right before the callback runs, so a firing that was already queued when
``cancel`` was called is dropped.
"""

from __future__ import annotations

import contextlib
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]

_handle_ids = itertools.count(1)


@dataclass(eq=False)
class TimerHandle:
    """Reference to an armed timer. Compare by identity."""

    interval: float
    repeat: bool
    callback: TimerCallback
    handle_id: int = field(default_factory=lambda: next(_handle_ids))
    cancelled: bool = False
    fired: int = 0

    def fire(self) -> bool:
        """Run the callback unless cancelled. Returns True if it ran."""
        if self.cancelled:
            return False
        self.fired += 1
        if not self.repeat:
            # One-shot timers retire before running so a callback that re-arms is safe.
            self.cancelled = True
        self.callback()
        return True


class TimerService(Protocol):
    """What the engine needs from the host's timer facility."""

    def arm_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle: ...

    def arm_one_shot(self, delay: float, callback: TimerCallback) -> TimerHandle: ...

    def cancel(self, handle: TimerHandle) -> None: ...


class SchedulerTimerService:
    """TimerService backed by an APScheduler ``AsyncIOScheduler``.

    The scheduler must be started by the owner (the app lifespan); jobs can be
    added before or after ``start()``.
    """

    def __init__(self, scheduler: AsyncIOScheduler) -> None:
        self._scheduler = scheduler
        self._jobs: dict[int, Job] = {}

    @property
    def armed_count(self) -> int:
        return len(self._jobs)

    def arm_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(interval=interval, repeat=True, callback=callback)
        job = self._scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(seconds=interval),
            args=[handle],
            id=f"marquee-timer-{handle.handle_id}",
            name=f"Repeating timer every {interval:g}s",
            max_instances=1,
            coalesce=True,
        )
        self._jobs[handle.handle_id] = job
        return handle

    def arm_one_shot(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(interval=delay, repeat=False, callback=callback)
        run_at = datetime.now().astimezone() + timedelta(seconds=delay)
        job = self._scheduler.add_job(
            self._run,
            trigger=DateTrigger(run_date=run_at),
            args=[handle],
            id=f"marquee-timer-{handle.handle_id}",
            name=f"One-shot timer after {delay:g}s",
            misfire_grace_time=None,
        )
        self._jobs[handle.handle_id] = job
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        job = self._jobs.pop(handle.handle_id, None)
        if job is None:
            return
        # One-shot jobs are removed by APScheduler once they have run.
        with contextlib.suppress(JobLookupError):
            job.remove()

    async def _run(self, handle: TimerHandle) -> None:
        if not handle.repeat:
            self._jobs.pop(handle.handle_id, None)
        try:
            handle.fire()
        except Exception:
            # A failing callback must not kill the repeating job.
            logger.exception("timer_callback_failed handle=%d", handle.handle_id)
