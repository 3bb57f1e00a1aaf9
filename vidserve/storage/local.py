"""Local filesystem storage provider."""

import logging
import os
from pathlib import Path

from vidserve.database.models import StorageKind, WatchedLocation

from .base import RawFile, ScanOptions

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class LocalStorageProvider:
    """Scans local directories recursively. Connect and disconnect are no-ops."""

    kind = StorageKind.LOCAL

    def connect(self, location: WatchedLocation) -> None:
        pass

    def disconnect(self, location_id: int) -> None:
        pass

    def root_for(self, location: WatchedLocation) -> Path:
        return Path(location.path)

    def scan(self, location: WatchedLocation, options: ScanOptions) -> list[RawFile]:
        return self.scan_path(Path(location.path), options)

    def scan_path(self, root: Path, options: ScanOptions) -> list[RawFile]:
        files: list[RawFile] = []
        self._walk_recursive(root, root, options, files)
        return files

    def _walk_recursive(
        self,
        current_dir: Path,
        root: Path,
        options: ScanOptions,
        files: list[RawFile],
    ) -> None:
        try:
            with os.scandir(current_dir) as it:
                entries = sorted(it, key=lambda e: e.name)
        except PermissionError:
            logger.warning("Permission denied scanning directory: %s", current_dir)
            return
        except OSError as e:
            logger.error("Error scanning directory %s: %s", current_dir, e)
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    self._walk_recursive(Path(entry.path), root, options, files)
                    continue
            except OSError as e:
                logger.error("Error reading entry %s: %s", entry.path, e)
                continue

            raw_file = _process_entry(entry, root, options)
            if raw_file:
                files.append(raw_file)


def should_skip_file(file_name: str, size: int, options: ScanOptions) -> bool:
    """Return True for in-progress downloads and files below the minimum size."""
    lowered = file_name.lower()
    if any(lowered.endswith(ext) for ext in options.temporary_extensions):
        logger.debug("Skipping temporary file: %s", file_name)
        return True

    size_mb = size / BYTES_PER_MB
    if size_mb < options.min_video_size_mb:
        logger.debug(
            "Skipping small file: %s (%.2f MB < %s MB)",
            file_name,
            size_mb,
            options.min_video_size_mb,
        )
        return True

    return False


def _process_entry(entry: os.DirEntry, root: Path, options: ScanOptions) -> RawFile | None:
    try:
        if not entry.is_file(follow_symlinks=False):
            return None

        ext = os.path.splitext(entry.name)[1].lower()
        if ext not in options.allowed_extensions:
            return None

        stat_result = entry.stat(follow_symlinks=False)
        if should_skip_file(entry.name, stat_result.st_size, options):
            return None

        path = Path(entry.path)
        return RawFile(
            name=entry.name,
            relative_path=str(path.relative_to(root)),
            absolute_path=path,
            size=stat_result.st_size,
            mtime=stat_result.st_mtime_ns // 1_000_000,
            ext=ext,
        )

    except PermissionError:
        logger.warning("Permission denied: %s", entry.path)
        return None
    except FileNotFoundError:
        logger.warning("File disappeared during scan: %s", entry.path)
        return None
    except OSError as e:
        logger.error("Error processing %s: %s", entry.path, e)
        return None
