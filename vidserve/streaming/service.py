"""Resolve indexed files to bytes on disk and plan full or partial responses."""

import logging
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass
from email.utils import formatdate
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

from vidserve.database import Store
from vidserve.errors import FileNotFoundInIndexError
from vidserve.storage import ProviderRegistry

from .ranges import ByteRange, parse_range
from .stats import FileStat, FileStatCache

logger = logging.getLogger(__name__)

READ_BUFFER_BYTES = 512 * 1024
CACHE_CONTROL = "public, max-age=31536000, immutable"

mimetypes.add_type("video/x-matroska", ".mkv")
mimetypes.add_type("video/x-m4v", ".m4v")
mimetypes.add_type("video/mp2t", ".ts")
mimetypes.add_type("video/mp2t", ".m2ts")
mimetypes.add_type("video/webm", ".webm")
mimetypes.add_type("video/x-msvideo", ".avi")


@dataclass
class StreamPlan:
    """Everything needed to answer one request for a file."""

    path: Path
    status_code: int
    headers: dict[str, str]
    media_type: str
    start: int
    length: int


class FileStream:
    """Open file handle feeding one response body.

    ``release`` closes the handle exactly once, whichever of finish, error or
    client disconnect ("close") gets there first.
    """

    def __init__(self, path: Path, start: int, length: int, buffer_size: int = READ_BUFFER_BYTES):
        self.path = path
        self.remaining = length
        self.buffer_size = buffer_size
        self.release_reason: str | None = None
        self._file = open(path, "rb")
        self._file.seek(start)

    @property
    def released(self) -> bool:
        return self.release_reason is not None

    async def chunks(self) -> AsyncIterator[bytes]:
        reason = "close"
        try:
            while self.remaining > 0:
                data = await run_in_threadpool(
                    self._file.read, min(self.buffer_size, self.remaining)
                )
                if not data:
                    break
                self.remaining -= len(data)
                yield data
            reason = "finish"
        except OSError:
            reason = "error"
            logger.exception("Error reading %s", self.path)
            raise
        finally:
            self.release(reason)

    def release(self, reason: str) -> bool:
        """Close the file. Returns False if it was already released."""
        if self.released:
            return False
        self.release_reason = reason
        self._file.close()
        logger.debug("Released stream for %s (%s)", self.path, reason)
        return True


class StreamService:
    def __init__(
        self,
        store: Store,
        providers: ProviderRegistry,
        stat_cache: FileStatCache | None = None,
        buffer_size: int = READ_BUFFER_BYTES,
    ):
        self.store = store
        self.providers = providers
        self.stat_cache = stat_cache or FileStatCache()
        self.buffer_size = buffer_size

    def resolve_path(self, file_id: int) -> Path:
        record = self.store.get_file_by_id(file_id)
        if record is None or record.watch_folder_id is None:
            raise FileNotFoundInIndexError(file_id)

        location = self.store.get_watch_folder_by_id(record.watch_folder_id)
        if location is None:
            raise FileNotFoundInIndexError(file_id)

        return self.providers.root_for(location) / record.path

    def head_metadata(self, file_id: int) -> StreamPlan:
        path, stat = self._locate(file_id)
        return self._full_plan(path, stat)

    def stream_file(self, file_id: int, range_header: str | None = None) -> StreamPlan:
        path, stat = self._locate(file_id)
        if not range_header:
            return self._full_plan(path, stat)

        byte_range = parse_range(range_header, stat.size)
        return self._partial_plan(path, stat, byte_range)

    def open(self, plan: StreamPlan) -> FileStream:
        try:
            return FileStream(plan.path, plan.start, plan.length, self.buffer_size)
        except FileNotFoundError:
            self.stat_cache.invalidate(plan.path)
            raise

    def _locate(self, file_id: int) -> tuple[Path, FileStat]:
        path = self.resolve_path(file_id)
        try:
            stat = self.stat_cache.get(path)
        except FileNotFoundError as e:
            logger.warning("Indexed file %d missing on disk: %s", file_id, path)
            raise FileNotFoundInIndexError(file_id) from e
        return path, stat

    def _full_plan(self, path: Path, stat: FileStat) -> StreamPlan:
        headers = _base_headers(stat)
        headers["Content-Length"] = str(stat.size)
        return StreamPlan(
            path=path,
            status_code=200,
            headers=headers,
            media_type=media_type_for(path),
            start=0,
            length=stat.size,
        )

    def _partial_plan(self, path: Path, stat: FileStat, byte_range: ByteRange) -> StreamPlan:
        headers = _base_headers(stat)
        headers["Content-Range"] = byte_range.content_range(stat.size)
        headers["Content-Length"] = str(byte_range.length)
        return StreamPlan(
            path=path,
            status_code=206,
            headers=headers,
            media_type=media_type_for(path),
            start=byte_range.start,
            length=byte_range.length,
        )


def media_type_for(path: Path) -> str:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or "application/octet-stream"


def _base_headers(stat: FileStat) -> dict[str, str]:
    return {
        "Accept-Ranges": "bytes",
        "Cache-Control": CACHE_CONTROL,
        "Last-Modified": formatdate(stat.mtime_ms / 1000, usegmt=True),
        "ETag": f'"{stat.size}-{stat.mtime_ms}"',
    }
