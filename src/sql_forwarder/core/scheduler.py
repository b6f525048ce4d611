from __future__ import annotations

import threading
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sql_forwarder.core.backoff import BackoffController
from sql_forwarder.core.poller import PollLoop
from sql_forwarder.utils.logging import get_logger

JOB_ID = "sql_forward_tick"


def interval_trigger(interval_ms: int) -> IntervalTrigger:
    return IntervalTrigger(seconds=interval_ms / 1000.0)


class TickScheduler:
    """
    Fires PollLoop ticks from an APScheduler interval job.

    The job runs with ``max_instances=1`` and ``coalesce=True`` so ticks that
    come due while one is still running are dropped rather than queued. The
    backoff controller reschedules the job whenever the interval changes.
    """

    def __init__(
        self,
        loop: PollLoop,
        backoff: BackoffController,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.loop = loop
        self.backoff = backoff
        self.scheduler = scheduler or BackgroundScheduler()
        self._stopped = threading.Event()
        self.log = get_logger("sql_forwarder.scheduler")

    def start(self) -> None:
        interval_ms = self.backoff.current_interval_ms
        self.scheduler.add_job(
            self.loop.tick,
            trigger=interval_trigger(interval_ms),
            id=JOB_ID,
            name="SQL forward tick",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.backoff.set_listener(self.apply_interval)
        self.scheduler.start()
        self.log.info("Scheduler started (interval=%s ms)", interval_ms)

    def apply_interval(self, interval_ms: int) -> None:
        """Reschedule the tick job at a new interval."""
        self.scheduler.reschedule_job(JOB_ID, trigger=interval_trigger(interval_ms))
        self.log.debug("Tick job rescheduled (interval=%s ms)", interval_ms)

    def run_forever(self) -> None:
        """
        Start and block until ``request_stop`` is called, then shut down.

        Returns only after a tick that is still running has finished.
        """
        self.start()
        self._stopped.wait()
        self.stop(wait=True)

    def request_stop(self) -> None:
        """Wake ``run_forever``; safe to call from a signal handler."""
        self._stopped.set()

    def stop(self, wait: bool = True) -> None:
        self.log.info("Shutting down scheduler")
        self.backoff.set_listener(None)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
        self._stopped.set()
        self.log.info("Scheduler shutdown complete")
