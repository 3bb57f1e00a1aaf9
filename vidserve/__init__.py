"""vidserve - Video library indexer and byte-range streaming server."""

__version__ = "0.1.0"

from vidserve.config import Config
from vidserve.database import Database, Store
from vidserve.scanner import Scanner

__all__ = ["Config", "Database", "Store", "Scanner"]
