"""Filename to identity enrichment with a TTL cache in front."""

import logging
from pathlib import Path

from vidserve.cache import MemoryCache
from vidserve.errors import EnrichmentError

from .identity import IdentityResolver
from .merge import parse_release
from .models import EnrichedInfo

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class EnrichmentPipeline:
    """Parses file names and resolves their catalog identity.

    ``process`` never raises. Lookups that fail because the catalog is
    unreachable are returned without identity and are not cached, so the next
    scan retries them.
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        cache: MemoryCache,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        interesting_kinds: tuple[str, ...] = ("movie", "series"),
    ):
        self.resolver = resolver
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.interesting_kinds = set(interesting_kinds)

    @staticmethod
    def cache_key(file_name: str) -> str:
        return f"imdb:{file_name}"

    def process(self, absolute_path: Path | str, file_name: str, size: int) -> EnrichedInfo:
        key = self.cache_key(file_name)
        cached = self.cache.get(key, self.ttl_seconds)
        if cached is not None:
            logger.debug("Using cached enrichment for %s", file_name)
            return cached

        try:
            release = parse_release(file_name)
            if release.kind.value not in self.interesting_kinds:
                info = EnrichedInfo(release=release)
                self.cache.set(key, info)
                return info

            try:
                identity = self.resolver.resolve(release.title, release.year, release.kind)
            except EnrichmentError as e:
                logger.warning("Identity lookup failed for %s: %s", file_name, e)
                return EnrichedInfo(release=release)

            info = EnrichedInfo(release=release, identity=identity)
        except Exception:
            logger.exception(
                "Enrichment failed for %s (%d bytes at %s)", file_name, size, absolute_path
            )
            return EnrichedInfo.unknown(file_name)

        if identity:
            logger.debug("Resolved %s to %s (%s)", file_name, identity.imdb_id, identity.name)
        self.cache.set(key, info)
        return info
