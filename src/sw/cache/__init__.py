"""
Cache package for response snapshots.

This package provides the cache store abstraction used by the worker:
- Base interfaces (base.py): CacheStore and CacheStorage contracts
- In-memory backend (memory.py): insertion-ordered stores keyed by request
"""

from sw.cache.base import CacheKeyLike, CacheStorage, CacheStore
from sw.cache.memory import InMemoryCacheStorage, InMemoryCacheStore

__all__ = [
    "CacheKeyLike",
    "CacheStorage",
    "CacheStore",
    "InMemoryCacheStorage",
    "InMemoryCacheStore",
]
