"""Database module for vidserve."""

from .connection import Database
from .models import IndexedFile, MediaKind, ScanRecord, StorageKind, WatchedLocation
from .schema import create_schema
from .store import Store

__all__ = [
    "Database",
    "Store",
    "create_schema",
    "IndexedFile",
    "MediaKind",
    "ScanRecord",
    "StorageKind",
    "WatchedLocation",
]
