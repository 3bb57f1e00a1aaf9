"""Lookup of the long-lived provider for a watch folder's storage kind."""

import logging
from pathlib import Path

from vidserve.database.models import StorageKind, WatchedLocation

from .base import StorageProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Holds one provider per storage kind so mount state survives between scans."""

    def __init__(self, providers: list[StorageProvider]):
        self._providers: dict[StorageKind, StorageProvider] = {p.kind: p for p in providers}

    def get(self, location: WatchedLocation) -> StorageProvider:
        provider = self._providers.get(location.kind)
        if provider is None:
            logger.warning(
                "No provider for storage kind %s, defaulting to local", location.kind.value
            )
            provider = self._providers[StorageKind.LOCAL]
        return provider

    def root_for(self, location: WatchedLocation) -> Path:
        return self.get(location).root_for(location)

    def release(self, location_id: int) -> None:
        """Disconnect the watch folder from every provider that may hold it."""
        for provider in self._providers.values():
            provider.disconnect(location_id)
