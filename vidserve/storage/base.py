"""Storage provider contract."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from vidserve.database.models import StorageKind, WatchedLocation


@dataclass
class RawFile:
    """A qualifying file found by a provider, before any enrichment."""

    name: str
    relative_path: str
    absolute_path: Path
    size: int
    mtime: int  # milliseconds since epoch
    ext: str


@dataclass
class ScanOptions:
    allowed_extensions: list[str] = field(default_factory=list)
    min_video_size_mb: float = 0
    temporary_extensions: list[str] = field(default_factory=list)

    @classmethod
    def for_location(
        cls, location: WatchedLocation, defaults: "ScanOptions | None" = None
    ) -> "ScanOptions":
        """Options from the location, with empty lists filled from ``defaults``."""
        defaults = defaults or cls()
        allowed = location.allowed_extensions or defaults.allowed_extensions
        temporary = location.temporary_extensions or defaults.temporary_extensions
        return cls(
            allowed_extensions=[e.lower() for e in allowed],
            min_video_size_mb=location.min_video_size_mb,
            temporary_extensions=[e.lower() for e in temporary],
        )


class StorageProvider(Protocol):
    """Protocol for storage providers."""

    kind: StorageKind

    def connect(self, location: WatchedLocation) -> None:
        """Make the location's files reachable on the local filesystem."""

    def scan(self, location: WatchedLocation, options: ScanOptions) -> list[RawFile]:
        """Return every qualifying file under the location."""

    def disconnect(self, location_id: int) -> None:
        """Release whatever ``connect`` acquired."""

    def root_for(self, location: WatchedLocation) -> Path:
        """Local directory that relative file paths are resolved against."""
