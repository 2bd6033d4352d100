# ispdesk/scheduler.py
import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger("Scheduler")

BILLING_JOB_ID = "billing_job"


def job_listener(event):
    """Logs the outcome of every scheduled job run."""
    if event.exception:
        logger.error(f"Job {event.job_id} failed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully")


class BillingScheduler:
    """
    Runs the overdue-invoice sweep on an in-process timer.

    The sweep runs once at start (when `run_on_startup`) and then every
    `interval_minutes`. Tests call `run_once()` instead of waiting on the clock.
    """

    def __init__(
        self,
        job: Optional[Callable[[], object]] = None,
        interval_minutes: int = 60,
        run_on_startup: bool = True,
    ):
        if job is None:
            from .services.billing_job import run_billing_check

            job = run_billing_check
        self.job = job
        self.interval_minutes = interval_minutes
        self.run_on_startup = run_on_startup
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self):
        """Runs one sweep synchronously in the calling thread."""
        return self.job()

    def start(self) -> None:
        if self.running:
            return

        scheduler = BackgroundScheduler(
            job_defaults={
                "coalesce": True,  # Missed runs collapse into one
                "max_instances": 1,  # Never two sweeps at once
                "misfire_grace_time": 300,
            }
        )
        scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

        job_kwargs = {}
        if self.run_on_startup:
            # next_run_time=None would pause the job, so only set it when needed
            job_kwargs["next_run_time"] = datetime.now()
        scheduler.add_job(
            self.job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=BILLING_JOB_ID,
            name="Overdue Invoice Sweep",
            replace_existing=True,
            **job_kwargs,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Scheduler started: billing sweep every {self.interval_minutes} min")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        logger.info("Stopping scheduler...")
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")
