"""Tallies and log formatting for scan runs."""

import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of one scan of a watch folder."""

    files_found: int = 0
    processed_count: int = 0
    skipped_count: int = 0
    removed_count: int = 0
    indexed_count: int = 0
    duration_ms: int = 0
    start_time: float = field(default_factory=time.monotonic, repr=False)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)

    def finish(self) -> None:
        self.duration_ms = self.elapsed_ms


class ProgressReporter:
    """Logs enrichment progress every ``interval`` processed files."""

    def __init__(self, interval: int = 100):
        self.interval = interval
        self._last_report_count = 0

    def report_if_needed(self, result: ScanResult, location_name: str) -> None:
        if result.processed_count - self._last_report_count >= self.interval:
            logger.info(
                "[%s] %d processed, %d unchanged of %d found",
                location_name,
                result.processed_count,
                result.skipped_count,
                result.files_found,
            )
            self._last_report_count = result.processed_count

    def report_completion(self, result: ScanResult, location_name: str) -> None:
        logger.info(
            "Scan of %s complete: %d found, %d processed, %d unchanged, %d indexed, "
            "%d removed (%s)",
            location_name,
            result.files_found,
            result.processed_count,
            result.skipped_count,
            result.indexed_count,
            result.removed_count,
            format_duration(result.duration_ms / 1000),
        )


def format_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    return f"{secs}s"
