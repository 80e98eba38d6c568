"""
APScheduler configuration for the recurring poll cycle.

The poll job runs once synchronously at startup and then on a fixed interval.
The interval job is registered with max_instances=1 and coalesce=True, so a
tick that fires while a cycle is still running is skipped instead of starting
a second, overlapping cycle.
"""

from __future__ import annotations

import signal
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from x_commentary.utils.logger import get_logger

logger = get_logger(__name__)

POLL_JOB_ID = "poll_x_accounts"


class PollScheduler:
    """
    Manages single-flight periodic execution of the poll cycle.

    Features:
        - Runs the job immediately, then every `interval_seconds`
        - Never runs two cycles at once (late ticks are dropped)
        - Logs and survives job failures

    Example:
        scheduler = PollScheduler(run_cycle, interval_seconds=60)
        scheduler.run_forever()
    """

    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: int = 60,
        timezone: str = "UTC",
    ):
        """
        Initialize the scheduler.

        Args:
            job: Zero-argument callable running one poll cycle.
            interval_seconds: Seconds between cycle starts.
            timezone: pytz zone name used for scheduling and log timestamps.
        """
        self.job = job
        self.interval_seconds = interval_seconds
        self.tz = pytz.timezone(timezone)
        self.scheduler = BackgroundScheduler(timezone=self.tz)
        self._stopping = False

        logger.info(f"Scheduler initialized: polling every {interval_seconds}s ({timezone})")

    def add_poll_job(self) -> None:
        """
        Register the interval job. The first interval tick comes one interval from now.
        """
        self.scheduler.add_job(
            func=self._execute_poll_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=self.tz),
            id=POLL_JOB_ID,
            name="Poll X accounts for new posts",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Poll job scheduled every {self.interval_seconds}s")

    def run_now(self) -> Optional[Any]:
        """Run one cycle synchronously in the calling thread."""
        return self._execute_poll_job()

    def start(self) -> None:
        """Start the scheduler."""
        if self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        logger.info("Scheduler started successfully")
        status = self.get_status()
        if status["next_run"]:
            logger.info(f"Next poll scheduled for: {status['next_run']}")

    def shutdown(self) -> None:
        """Gracefully shutdown the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Scheduler shut down successfully")

    def get_status(self) -> Dict[str, Any]:
        """
        Get current scheduler status.

        Returns:
            Dictionary with scheduler information including:
            - running: Whether scheduler is active
            - interval_seconds: Configured polling interval
            - next_run: Next scheduled run time (ISO 8601) or None
        """
        status: Dict[str, Any] = {
            "running": self.scheduler.running,
            "interval_seconds": self.interval_seconds,
            "next_run": None,
        }

        if self.scheduler.running:
            job = self.scheduler.get_job(POLL_JOB_ID)
            if job and job.next_run_time:
                status["next_run"] = job.next_run_time.isoformat()

        return status

    def run_forever(self) -> None:
        """
        Run once now, then keep polling on schedule until SIGINT or SIGTERM.
        """
        signal.signal(signal.SIGTERM, self._handle_sigterm)
        logger.info("Starting post polling loop...")
        try:
            self.run_now()
            self.add_poll_job()
            self.start()
            while not self._stopping:
                time.sleep(1)
        except (KeyboardInterrupt, SystemExit):
            logger.info("Stop requested")
        finally:
            self.shutdown()

    def _handle_sigterm(self, signum, frame) -> None:
        self._stopping = True
        raise SystemExit(0)

    def _execute_poll_job(self) -> Optional[Any]:
        """
        Execute one poll cycle, logging instead of raising on failure.
        """
        logger.info("=" * 80)
        logger.info(f"Polling for new posts at {datetime.now(self.tz).isoformat()}")

        try:
            outcome = self.job()
            logger.info(f"Poll cycle completed: {outcome}")
            logger.info("=" * 80)
            return outcome
        except Exception as e:  # noqa: BLE001
            logger.error(f"Poll cycle failed with error: {e}", exc_info=True)
            logger.info("=" * 80)
            return None
