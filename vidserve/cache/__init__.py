"""Caching primitives."""

from .memory import CacheEntry, CacheStats, MemoryCache

__all__ = ["MemoryCache", "CacheEntry", "CacheStats"]
