"""
Reminder Scheduler

Runs the daily reminder pass once a day at a fixed local time using the
`schedule` library, polled from a daemon thread started with the app.

A run that is still in progress when the next one fires is skipped,
never overlapped.
"""

import threading
from datetime import datetime
from typing import Callable, Optional

import schedule
from loguru import logger


class ReminderScheduler:
    """
    Owns a private schedule.Scheduler so jobs never leak into the
    module-level default scheduler.
    """

    def __init__(
        self,
        job: Callable[[], object],
        run_at: str = "09:00",
        timezone: str = "Asia/Kolkata",
        poll_seconds: int = 30,
        scheduler: Optional[schedule.Scheduler] = None
    ):
        self.job = job
        self.run_at = run_at
        self.timezone = timezone
        self.poll_seconds = poll_seconds
        self.scheduler = scheduler or schedule.Scheduler()
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._scheduled_job = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def next_run(self) -> Optional[datetime]:
        return self.scheduler.next_run

    def run_once(self) -> bool:
        """
        Execute the job unless a previous execution is still running.

        Returns:
            True if the job ran, False if it was skipped
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Reminder run already in progress, skipping this trigger")
            return False
        try:
            self.job()
        except Exception:
            logger.exception("Scheduled reminder run failed")
        finally:
            self._run_lock.release()
        return True

    def _loop(self):
        while not self._stop_event.is_set():
            self.scheduler.run_pending()
            self._stop_event.wait(self.poll_seconds)

    def start(self):
        if self.is_running:
            return
        if self._scheduled_job is None:
            self._scheduled_job = self.scheduler.every().day.at(self.run_at, self.timezone).do(self.run_once)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="reminder-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Reminder scheduler started: daily at {self.run_at} ({self.timezone})")

    def stop(self, timeout: Optional[float] = 5):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._scheduled_job is not None:
            self.scheduler.cancel_job(self._scheduled_job)
            self._scheduled_job = None
        logger.info("Reminder scheduler stopped")
