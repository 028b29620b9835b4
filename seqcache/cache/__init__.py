"""Cache module for seqcache."""

from .eviction import (
    EvictionPolicy,
    FIFOEvictionPolicy,
    LFUEvictionPolicy,
    LRUEvictionPolicy,
    create_policy,
)
from .store import Cache, CacheEntry

__all__ = [
    "Cache",
    "CacheEntry",
    "EvictionPolicy",
    "FIFOEvictionPolicy",
    "LFUEvictionPolicy",
    "LRUEvictionPolicy",
    "create_policy",
]
