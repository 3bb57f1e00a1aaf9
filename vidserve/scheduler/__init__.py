"""Cron scheduling of watch folder scans."""

from .cron import is_valid_cron, parse_cron
from .scheduler import JobStatus, ScanScheduler, SchedulerStatus, job_id

__all__ = [
    "ScanScheduler",
    "SchedulerStatus",
    "JobStatus",
    "job_id",
    "parse_cron",
    "is_valid_cron",
]
