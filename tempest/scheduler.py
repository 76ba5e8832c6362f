"""Scheduled alert checking and maintenance tasks.

The periodic sweep is a safety net for readings whose synchronous
evaluation was missed: it re-evaluates the latest recent reading of each
station. A daily task prunes old trigger history.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from .config import config
from .evaluator import AlertEvaluator
from tempest_common.store import Reading, WeatherStore

logger = logging.getLogger(__name__)


def latest_per_station(readings: list[Reading]) -> dict[str | None, Reading]:
    """Collapse readings to the newest one per station.

    On equal timestamps the reading seen last wins.
    """
    latest: dict[str | None, Reading] = {}
    for reading in readings:
        current = latest.get(reading.station_id)
        if current is None or reading.timestamp >= current.timestamp:
            latest[reading.station_id] = reading
    return latest


def next_cleanup_time(now: datetime, hour: int) -> datetime:
    """Next occurrence of hour:00 strictly after now."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class AlertScheduler:
    """Runs the periodic alert sweep and the daily history cleanup."""

    def __init__(
        self,
        store: WeatherStore,
        evaluator: AlertEvaluator | None = None,
        clock: Callable[[], datetime] | None = None,
        sweep_interval_seconds: int | None = None,
        window_minutes: int | None = None,
        retention_days: int | None = None,
        cleanup_hour: int | None = None,
    ):
        self.store = store
        self.clock = clock or datetime.now
        self.evaluator = evaluator or AlertEvaluator(store, clock=self.clock)
        self.sweep_interval_seconds = sweep_interval_seconds or config.SWEEP_INTERVAL_SECONDS
        self.window_minutes = window_minutes or config.SWEEP_WINDOW_MINUTES
        self.retention_days = retention_days or config.HISTORY_RETENTION_DAYS
        self.cleanup_hour = config.CLEANUP_HOUR if cleanup_hour is None else cleanup_hour

        self.next_cleanup_at: datetime | None = None
        self._sweep_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def check_alerts(self) -> int:
        """
        Evaluate the latest recent reading of every station.

        Skipped when a previous sweep is still running. Errors are logged,
        never raised.

        Returns the number of alerts triggered.
        """
        if not self._sweep_lock.acquire(blocking=False):
            logger.warning("Previous alert check still running, skipping this run")
            return 0

        try:
            logger.debug("Starting scheduled alert check")
            since = self.clock() - timedelta(minutes=self.window_minutes)
            recent = self.store.get_readings_since(since)

            if not recent:
                logger.debug("No recent readings found, skipping alert check")
                return 0

            latest = latest_per_station(recent)
            logger.info(f"Checking alerts for {len(latest)} station(s) with recent readings")

            triggered = 0
            for reading in latest.values():
                triggered += len(self.evaluator.evaluate_reading(reading))

            logger.debug("Alert check completed successfully")
            return triggered

        except Exception:
            logger.exception("Error during scheduled alert check")
            return 0

        finally:
            self._sweep_lock.release()

    def cleanup_old_history(self) -> int:
        """Delete trigger history older than the retention window.

        Returns the number of rows deleted (0 on error).
        """
        logger.info("Starting alert history cleanup")
        try:
            cutoff = self.clock() - timedelta(days=self.retention_days)
            deleted = self.store.delete_history_before(cutoff)
            logger.info(f"Alert history cleanup completed, removed {deleted} row(s)")
            return deleted
        except Exception:
            logger.exception("Error during alert history cleanup")
            return 0

    def run_pending(self) -> None:
        """Run the sweep, and the cleanup when it is due."""
        self.check_alerts()

        now = self.clock()
        if self.next_cleanup_at is None:
            self.next_cleanup_at = next_cleanup_time(now, self.cleanup_hour)
        elif now >= self.next_cleanup_at:
            self.cleanup_old_history()
            self.next_cleanup_at = next_cleanup_time(now, self.cleanup_hour)

    def run_continuous(self, interval_seconds: int | None = None) -> None:
        """
        Run the scheduling loop until stop() is called.

        Args:
            interval_seconds: Seconds between sweeps (default from config)
        """
        interval = interval_seconds or self.sweep_interval_seconds
        self.next_cleanup_at = next_cleanup_time(self.clock(), self.cleanup_hour)

        logger.info(
            f"Alert scheduler started with {self.store.count_enabled_alerts()} enabled alert(s) "
            f"(sweep every {interval}s over the last "
            f"{self.window_minutes} min, history kept {self.retention_days} days, "
            f"next cleanup {self.next_cleanup_at:%Y-%m-%d %H:%M})"
        )

        while not self._stop_event.is_set():
            try:
                self.run_pending()
            except Exception:
                logger.exception("Unexpected error in scheduler loop")
            self._stop_event.wait(interval)

        logger.info("Alert scheduler stopped")

    def start(self, interval_seconds: int | None = None) -> None:
        """Run the scheduling loop on a background daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Scheduler already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            kwargs={"interval_seconds": interval_seconds},
            name="tempest-alert-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
