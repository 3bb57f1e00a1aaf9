"""Data models for the database."""

from dataclasses import dataclass, field
from enum import Enum


class StorageKind(Enum):
    """Kind of storage backing a watch folder."""

    LOCAL = "local"
    NETWORK = "network"


class MediaKind(Enum):
    """Content kind inferred from a file name."""

    MOVIE = "movie"
    SERIES = "series"
    UNKNOWN = "unknown"


@dataclass
class WatchedLocation:
    """Represents a configured watch folder record."""

    id: int | None
    path: str
    name: str | None = None
    enabled: bool = True
    scan_interval: str = "*/5 * * * *"
    allowed_extensions: list[str] = field(default_factory=lambda: [".mp4", ".mkv", ".avi"])
    min_video_size_mb: float = 50
    temporary_extensions: list[str] = field(default_factory=list)
    kind: StorageKind = StorageKind.LOCAL
    username: str | None = None
    domain: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.path


@dataclass
class IndexedFile:
    """Represents an indexed media file record."""

    id: int | None
    name: str
    path: str
    size: int
    mtime: int
    parsed_name: str | None = None
    kind: str | None = None
    imdb_id: str | None = None
    season: int | None = None
    episode: int | None = None
    resolution: str | None = None
    source: str | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    audio_channels: str | None = None
    languages: list[str] | None = None
    release_group: str | None = None
    flags: list[str] | None = None
    edition: str | None = None
    imdb_name: str | None = None
    imdb_year: int | None = None
    imdb_type: str | None = None
    year_range: str | None = None
    image: str | None = None
    starring: str | None = None
    similarity: float | None = None
    watch_folder_id: int | None = None


@dataclass
class ScanRecord:
    """Represents one row of scan history."""

    id: int | None
    timestamp: str | None
    files_found: int
    duration_ms: int
    errors: int = 0
    processed_count: int = 0
    skipped_count: int = 0
    watch_folder_id: int | None = None
