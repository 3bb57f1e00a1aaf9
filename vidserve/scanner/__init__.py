"""Scanner: keeps the file index in line with watch folder contents."""

from .progress import ProgressReporter, ScanResult, format_duration
from .scanner import Scanner, build_record

__all__ = [
    "Scanner",
    "ScanResult",
    "ProgressReporter",
    "build_record",
    "format_duration",
]
