"""Records produced by the enrichment pipeline."""

from dataclasses import dataclass, field
from typing import Self

from vidserve.database.models import MediaKind


@dataclass
class ReleaseClassification:
    """First-pass reading of a release name: movie vs. series plus coarse tags."""

    kind: MediaKind
    title: str | None = None
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    resolution: str | None = None
    source: str | None = None
    encoding: str | None = None
    dub: str | None = None  # "<codec>-<channels>", e.g. "AC3-5.1"
    languages: list[str] = field(default_factory=list)
    group: str | None = None
    flags: list[str] = field(default_factory=list)


@dataclass
class Revision:
    version: int = 1
    real: int = 0


@dataclass
class ReleaseTokens:
    """Detailed token extraction for a release name."""

    title: str | None = None
    year: int | None = None
    seasons: list[int] = field(default_factory=list)
    episodes: list[int] = field(default_factory=list)
    resolution: str | None = None
    sources: list[str] = field(default_factory=list)
    video_codec: str | None = None
    audio_codec: str | None = None
    audio_channels: str | None = None
    languages: list[str] = field(default_factory=list)
    group: str | None = None
    revision: Revision = field(default_factory=Revision)
    edition: dict[str, bool] = field(default_factory=dict)


@dataclass
class ParsedRelease:
    """Structural attributes after merging both parsers."""

    title: str
    kind: MediaKind = MediaKind.UNKNOWN
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    resolution: str | None = None
    source: str | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    audio_channels: str | None = None
    languages: list[str] = field(default_factory=list)
    release_group: str | None = None
    flags: list[str] = field(default_factory=list)
    edition: str | None = None


@dataclass
class IdentityMatch:
    """External catalog entry matched to a parsed title."""

    imdb_id: str
    name: str
    year: int | None = None
    type: str | None = None
    year_range: str | None = None
    image: dict | None = None
    starring: str | None = None
    similarity: float = 0.0


@dataclass
class EnrichedInfo:
    release: ParsedRelease
    identity: IdentityMatch | None = None

    @classmethod
    def unknown(cls, file_name: str) -> Self:
        return cls(release=ParsedRelease(title=file_name))

    @property
    def kind(self) -> MediaKind:
        return self.release.kind

    @property
    def imdb_id(self) -> str | None:
        return self.identity.imdb_id if self.identity else None
