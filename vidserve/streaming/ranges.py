"""HTTP Range header parsing for single byte ranges."""

import re
from dataclasses import dataclass

from vidserve.errors import RangeNotSatisfiableError

RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int  # inclusive

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(header: str, size: int) -> ByteRange:
    """Parse ``bytes=<start>-<end?>`` against a file of ``size`` bytes.

    An omitted end means the last byte. Ranges are not clamped: an end past
    the file, a start at or past the end of the file, a start after the end,
    or any other form (suffix or multiple ranges) raises
    RangeNotSatisfiableError.
    """
    match = RANGE_PATTERN.match(header.strip())
    if not match:
        raise RangeNotSatisfiableError(header, size)

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else size - 1

    if start >= size or end >= size or start > end:
        raise RangeNotSatisfiableError(header, size)
    return ByteRange(start, end)
