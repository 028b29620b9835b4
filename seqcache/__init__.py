"""
seqcache: In-Memory Key-Value Cache

A key-value cache with pluggable eviction (LRU by default) and optional
flat-file snapshots that preserve recency order across restarts.
"""

from .cache import Cache, CacheEntry, LRUEvictionPolicy
from .exceptions import (
    CacheError,
    PersistenceNotConfiguredError,
    SnapshotEncodeError,
    SnapshotParseError,
)

__version__ = "1.0.0"

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheError",
    "LRUEvictionPolicy",
    "PersistenceNotConfiguredError",
    "SnapshotEncodeError",
    "SnapshotParseError",
]
