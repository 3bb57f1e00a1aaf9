"""Byte-range streaming of indexed files."""

from .ranges import ByteRange, parse_range
from .router import create_stream_router, install_error_handlers
from .service import (
    CACHE_CONTROL,
    READ_BUFFER_BYTES,
    FileStream,
    StreamPlan,
    StreamService,
    media_type_for,
)
from .stats import FileStat, FileStatCache

__all__ = [
    "CACHE_CONTROL",
    "READ_BUFFER_BYTES",
    "ByteRange",
    "parse_range",
    "FileStat",
    "FileStatCache",
    "FileStream",
    "StreamPlan",
    "StreamService",
    "media_type_for",
    "create_stream_router",
    "install_error_handlers",
]
