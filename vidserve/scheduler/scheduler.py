"""Per-watch-folder scan scheduling with a one-scan-at-a-time guard."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from vidserve.database import WatchedLocation
from vidserve.errors import ScanInProgressError
from vidserve.scanner import Scanner, ScanResult

from .cron import parse_cron

logger = logging.getLogger(__name__)


@dataclass
class JobStatus:
    location_id: int
    cron: str
    next_run: datetime | None = None
    scanning: bool = False


@dataclass
class SchedulerStatus:
    running: bool
    jobs: list[JobStatus] = field(default_factory=list)
    scanning: list[int] = field(default_factory=list)


def job_id(location_id: int) -> str:
    return f"scan-{location_id}"


class ScanScheduler:
    """Runs one cron job per enabled watch folder.

    A watch folder is either idle or scanning. Scheduled firings that find
    their folder already scanning are skipped; manual triggers raise
    ScanInProgressError instead.
    """

    def __init__(self, scanner: Scanner, scheduler: BaseScheduler | None = None):
        self.scanner = scanner
        self.scheduler = scheduler or BackgroundScheduler()
        self._jobs: dict[int, str] = {}
        self._scanning: set[int] = set()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

    def start(self, locations: Iterable[WatchedLocation]) -> None:
        if not self.scheduler.running:
            self.scheduler.start()

        scheduled = 0
        for location in locations:
            if self.add_watch_folder(location):
                scheduled += 1
        logger.info("Scheduler started with %d watch folder jobs", scheduled)

    def stop(self) -> None:
        """Cancel every scan job. Safe to call more than once."""
        for location_id in list(self._jobs):
            self._remove_job(location_id)
        logger.info("Scheduler stopped")

    def shutdown(self, timeout: float | None = None) -> bool:
        """Stop scheduling and wait up to ``timeout`` seconds for running scans.

        Returns False if scans were still running when the wait gave up.
        """
        self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        return self.wait_idle(timeout)

    def wait_idle(self, timeout: float | None = None) -> bool:
        with self._idle:
            if self._scanning:
                logger.info("Waiting for %d running scans to finish", len(self._scanning))
            idle = self._idle.wait_for(lambda: not self._scanning, timeout)
            if not idle:
                logger.warning(
                    "Scans still running after %ss: %s", timeout, sorted(self._scanning)
                )
            return idle

    def add_watch_folder(self, location: WatchedLocation) -> bool:
        """Schedule (or reschedule) one watch folder. Returns False if not scheduled."""
        if location.id is None:
            raise ValueError("Watch folder must be saved before it can be scheduled")

        if location.id in self._jobs:
            self._remove_job(location.id)

        if not location.enabled:
            logger.info("Watch folder %s is disabled, not scheduling", location.display_name)
            return False

        try:
            trigger = parse_cron(location.scan_interval, timezone=self.scheduler.timezone)
        except ValueError as e:
            logger.error(
                "Invalid cron expression %r for watch folder %s: %s",
                location.scan_interval,
                location.display_name,
                e,
            )
            return False

        self.scheduler.add_job(
            self._run_scheduled,
            trigger,
            args=[location.id],
            id=job_id(location.id),
            name=f"scan {location.display_name}",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._jobs[location.id] = location.scan_interval
        logger.info(
            "Scheduled scan of %s with cron %r", location.display_name, location.scan_interval
        )
        return True

    def remove_watch_folder(self, location_id: int, release: bool = True) -> None:
        self._remove_job(location_id)
        if release:
            self.scanner.release(location_id)

    def trigger_scan(self, location_id: int) -> ScanResult:
        """Scan now, on the calling thread. Errors propagate to the caller."""
        result = self._execute_scan(location_id, skip_if_busy=False)
        assert result is not None
        return result

    def scan_soon(self, location_id: int) -> None:
        """Queue a one-off background scan, subject to the same guard as scheduled ones."""
        self.scheduler.add_job(
            self._run_scheduled,
            args=[location_id],
            id=f"initial-{job_id(location_id)}",
            replace_existing=True,
        )

    def is_scanning(self, location_id: int) -> bool:
        with self._lock:
            return location_id in self._scanning

    def get_status(self) -> SchedulerStatus:
        with self._lock:
            scanning = sorted(self._scanning)

        jobs = []
        for location_id, cron in sorted(self._jobs.items()):
            job = self.scheduler.get_job(job_id(location_id))
            jobs.append(
                JobStatus(
                    location_id=location_id,
                    cron=cron,
                    next_run=getattr(job, "next_run_time", None) if job else None,
                    scanning=location_id in scanning,
                )
            )
        return SchedulerStatus(running=self.scheduler.running, jobs=jobs, scanning=scanning)

    def _remove_job(self, location_id: int) -> None:
        self._jobs.pop(location_id, None)
        try:
            self.scheduler.remove_job(job_id(location_id))
        except JobLookupError:
            return
        logger.info("Removed scan job for watch folder %d", location_id)

    def _run_scheduled(self, location_id: int) -> None:
        try:
            self._execute_scan(location_id, skip_if_busy=True)
        except Exception:
            logger.exception("Scheduled scan failed for watch folder %d", location_id)

    def _execute_scan(self, location_id: int, skip_if_busy: bool) -> ScanResult | None:
        with self._lock:
            if location_id in self._scanning:
                if not skip_if_busy:
                    raise ScanInProgressError(location_id)
                logger.warning(
                    "Scan already in progress for watch folder %d, skipping", location_id
                )
                return None
            self._scanning.add(location_id)

        try:
            return self.scanner.scan(location_id)
        finally:
            with self._idle:
                self._scanning.discard(location_id)
                self._idle.notify_all()
