"""
Cache Store Module

This module implements the eviction-tracked map at the core of seqcache.

Every touch (a put, or a get that hits) advances a logical clock and stamps
the touched entry with the new value. The stamp orders entries by recency
and is what gets written to a snapshot, so a reloaded cache evicts in the
same order the saved cache would have.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

from ..config.settings import settings
from ..exceptions import PersistenceNotConfiguredError
from .eviction import EvictionPolicy, create_policy
from .persistence import Decoder, read_snapshot, write_snapshot

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """
    A stored value and the sequence of its last touch.

    Attributes:
        value: The cached value
        sequence: Logical time of the last insert or hit
    """
    value: V
    sequence: int


class Cache(Generic[K, V]):
    """
    In-memory key-value cache with pluggable eviction and snapshot support.

    The cache holds at most `capacity` entries. When a put adds a new key
    and the store grows past capacity, exactly one entry is evicted, chosen
    by the eviction policy (LRU unless told otherwise).

    A capacity of 0 is allowed: each new key is evicted by the put that
    added it, so the cache never holds anything.

    Usage:
        cache = Cache(capacity=2)
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")           # "1", "a" is now most recently used
        cache.put("c", "3")      # evicts "b"

    Not thread-safe; callers sharing a cache must serialize access.

    Attributes:
        capacity: Maximum number of entries
        persist_path: Snapshot file used by persist(), if any
        policy: The eviction policy in use
    """

    def __init__(
        self,
        capacity: Optional[int] = None,
        persist_path: Optional[str] = None,
        policy: Optional[EvictionPolicy] = None,
    ):
        """
        Initialize an empty cache. Never reads persist_path.

        Args:
            capacity: Maximum number of entries (default from settings.CAPACITY)
            persist_path: File used by persist()
            policy: Eviction policy instance (default from settings.POLICY)

        Raises:
            ValueError: If capacity is negative
        """
        capacity = capacity if capacity is not None else settings.CAPACITY
        if capacity < 0:
            raise ValueError("capacity must not be negative")

        self.capacity = capacity
        self.persist_path = os.fspath(persist_path) if persist_path is not None else None
        self.policy = policy if policy is not None else create_policy(settings.POLICY)

        self._store: Dict[K, CacheEntry[V]] = {}
        self._sequence = 0

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def sequence(self) -> int:
        """Current value of the logical clock."""
        return self._sequence

    def _tick(self) -> int:
        self._sequence += 1
        return self._sequence

    def get(self, key: K) -> Optional[V]:
        """
        Retrieve a value and mark it as most recently used.

        Args:
            key: The key to look up

        Returns:
            The value if present, None otherwise. A miss leaves the
            clock untouched.
        """
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return None

        entry.sequence = self._tick()
        self.policy.record_access(key, entry.sequence)
        self._hits += 1
        return entry.value

    def put(self, key: K, value: V) -> Optional[V]:
        """
        Insert or overwrite a key. An overwrite counts as an access.

        Args:
            key: The key to store
            value: The value to associate with the key

        Returns:
            The previous value if the key existed, None otherwise
        """
        sequence = self._tick()
        previous = self._store.get(key)
        self._store[key] = CacheEntry(value=value, sequence=sequence)

        if previous is not None:
            self.policy.record_access(key, sequence)
            return previous.value

        self.policy.record_insert(key, sequence)
        if len(self._store) > self.capacity:
            self.remove_least_recently_used()
        return None

    def remove_least_recently_used(self) -> Optional[K]:
        """
        Evict the entry chosen by the policy.

        With the default LRU policy this is the entry with the smallest
        sequence.

        Returns:
            The evicted key, or None if the cache is empty
        """
        victim = self.policy.select_victim()
        if victim is None:
            return None

        self._store.pop(victim, None)
        self.policy.record_remove(victim)
        self._evictions += 1
        logger.debug(f"Evicted {victim!r} ({self.policy.name})")
        return victim

    def delete(self, key: K) -> bool:
        """
        Remove a key without touching the clock.

        Returns:
            True if the key was removed, False if it was not present
        """
        if key not in self._store:
            return False

        del self._store[key]
        self.policy.record_remove(key)
        return True

    def peek(self, key: K) -> Optional[V]:
        """Get a value without updating recency."""
        entry = self._store.get(key)
        return entry.value if entry is not None else None

    def contains(self, key: K) -> bool:
        """Check if a key is present (without updating recency)."""
        return key in self._store

    def size(self) -> int:
        """Get the current number of entries."""
        return len(self._store)

    def clear(self) -> None:
        """Remove every entry. The clock keeps its value."""
        self._store.clear()
        self.policy.clear()

    def items(self) -> List[Tuple[K, CacheEntry[V]]]:
        """Entries from oldest to newest sequence."""
        return sorted(self._store.items(), key=lambda item: item[1].sequence)

    def keys(self) -> List[K]:
        """Keys from oldest to newest sequence."""
        return [key for key, _ in self.items()]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary containing size, capacity, utilization, the current
            sequence, the policy name and hit/miss/eviction counters
        """
        total = len(self._store)
        return {
            "size": total,
            "capacity": self.capacity,
            "utilization": total / self.capacity if self.capacity > 0 else 0,
            "sequence": self._sequence,
            "policy": self.policy.name,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self.capacity}, size={len(self._store)}, "
            f"policy={self.policy.name!r})"
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """
        Write every entry to persist_path, oldest first, replacing the file.

        Raises:
            PersistenceNotConfiguredError: If the cache has no persist_path
            SnapshotEncodeError: If a key or value cannot be written safely
            OSError: If the file cannot be written
        """
        if self.persist_path is None:
            raise PersistenceNotConfiguredError()
        self._warn_if_not_restorable()

        count = write_snapshot(
            self.persist_path,
            ((key, entry.value, entry.sequence) for key, entry in self.items()),
        )
        logger.info(f"Persisted {count} entries to {self.persist_path}")

    def _warn_if_not_restorable(self) -> None:
        if not self.policy.restorable:
            logger.warning(
                f"Snapshot at {self.persist_path} keeps recency only; "
                f"{self.policy.name} state is rebuilt from it and may evict differently"
            )

    @classmethod
    def load(
        cls,
        capacity: int,
        path: str,
        key_type: Decoder = str,
        value_type: Decoder = str,
        policy: Optional[EvictionPolicy] = None,
        strict: Optional[bool] = None,
        trim: Optional[bool] = None,
    ) -> "Cache":
        """
        Restore a cache from a snapshot, or create an empty one.

        A missing file is not an error: the result is an empty cache bound
        to path. Entries keep their stored sequences and the clock resumes
        after the highest one. The policy is rebuilt by replaying inserts
        oldest first, which restores LRU exactly; FIFO insertion order and
        LFU counts are not stored and come back as recency order (a
        WARNING is logged). Loading does not evict, so the result may
        hold more than capacity entries unless trim is set.

        Args:
            capacity: Maximum number of entries
            path: Snapshot file, also used for later persist() calls
            key_type: Callable turning key text into a key
            value_type: Callable turning value text into a value
            policy: Eviction policy instance (default from settings.POLICY)
            strict: Abort on an undecodable record (default settings.STRICT_LOAD)
            trim: Evict down to capacity after loading (default settings.TRIM_ON_LOAD)

        Raises:
            SnapshotParseError: On an undecodable record in strict mode
            OSError: If the file exists but cannot be read
        """
        strict = settings.STRICT_LOAD if strict is None else strict
        trim = settings.TRIM_ON_LOAD if trim is None else trim

        cache = cls(capacity=capacity, persist_path=path, policy=policy)
        if not os.path.exists(path):
            logger.info(f"No snapshot at {path}, starting empty")
            return cache

        cache._warn_if_not_restorable()
        snapshot = read_snapshot(path, key_type=key_type, value_type=value_type, strict=strict)
        for record in snapshot.records:
            cache._store[record.key] = CacheEntry(value=record.value, sequence=record.sequence)
            cache.policy.record_insert(record.key, record.sequence)
        cache._sequence = snapshot.last_sequence

        if trim:
            while len(cache._store) > cache.capacity:
                cache.remove_least_recently_used()

        logger.info(
            f"Loaded {len(cache._store)} entries from {path} "
            f"(skipped {snapshot.skipped} lines, sequence {cache._sequence})"
        )
        return cache
