"""
Eviction Policy Module

This module implements the eviction policies the Cache can be paired with.

A policy only tracks keys, never values. The Cache tells the policy about
every insert, access and removal, and asks it for a victim when the store
grows past capacity.

LRU Concept:
- Most recently touched keys are at the END of the OrderedDict
- Least recently touched keys are at the BEGINNING
- On access (get/put overwrite), move the key to the end
- On eviction, take the key from the beginning
"""

from collections import OrderedDict
from typing import Dict, Hashable, List, Optional, Tuple, Type


class EvictionPolicy:
    """
    Base class for eviction policies.

    Subclasses decide which key should leave the cache when it is full.
    The `sequence` passed to the hooks is the cache's logical clock value
    for the touch being recorded.

    A snapshot only keeps each entry's last sequence. Policies whose
    victim order follows from that alone set `restorable` to True; the
    others come back from a snapshot ordered by recency.
    """

    name = "base"
    restorable = False

    def record_insert(self, key: Hashable, sequence: int) -> None:
        """Register a key that has just been added to the cache."""
        raise NotImplementedError

    def record_access(self, key: Hashable, sequence: int) -> None:
        """Register a hit (or an overwrite) on a key already tracked."""
        raise NotImplementedError

    def record_remove(self, key: Hashable) -> None:
        """Forget a key that left the cache."""
        raise NotImplementedError

    def select_victim(self) -> Optional[Hashable]:
        """Return the key that should be evicted next, or None if empty."""
        raise NotImplementedError

    def clear(self) -> None:
        """Forget every tracked key."""
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tracked={len(self)})"


class LRUEvictionPolicy(EvictionPolicy):
    """
    Least Recently Used eviction policy.

    Uses an OrderedDict keyed by cache key, ordered oldest touch first.
    Inserts, accesses, removals and victim selection are all O(1).

    Usage:
        policy = LRUEvictionPolicy()
        policy.record_insert("a", 1)
        policy.record_insert("b", 2)
        policy.record_access("a", 3)
        policy.select_victim()  # "b"
    """

    name = "lru"
    restorable = True

    def __init__(self):
        self._order: "OrderedDict[Hashable, int]" = OrderedDict()

    def record_insert(self, key: Hashable, sequence: int) -> None:
        self._order[key] = sequence
        self._order.move_to_end(key)

    def record_access(self, key: Hashable, sequence: int) -> None:
        self._order[key] = sequence
        self._order.move_to_end(key)

    def record_remove(self, key: Hashable) -> None:
        self._order.pop(key, None)

    def select_victim(self) -> Optional[Hashable]:
        if not self._order:
            return None
        return next(iter(self._order))

    def clear(self) -> None:
        self._order.clear()

    def keys(self) -> List[Hashable]:
        """Tracked keys from least to most recently used."""
        return list(self._order.keys())

    def __len__(self) -> int:
        return len(self._order)


class FIFOEvictionPolicy(LRUEvictionPolicy):
    """
    First In First Out eviction policy.

    Same ordered index as LRU, but hits never reorder: the victim is
    always the key that was inserted earliest.
    """

    name = "fifo"
    restorable = False

    def record_access(self, key: Hashable, sequence: int) -> None:
        # Hits never move a key
        self._order[key] = sequence


class LFUEvictionPolicy(EvictionPolicy):
    """
    Least Frequently Used eviction policy.

    Each key carries a touch count and the sequence of its last touch.
    The victim is the key with the lowest count; among equal counts, the
    one touched longest ago.

    Victim selection scans every tracked key, so it is O(n).
    """

    name = "lfu"

    def __init__(self):
        self._counts: Dict[Hashable, Tuple[int, int]] = {}

    def record_insert(self, key: Hashable, sequence: int) -> None:
        self._counts[key] = (1, sequence)

    def record_access(self, key: Hashable, sequence: int) -> None:
        count, _ = self._counts.get(key, (0, sequence))
        self._counts[key] = (count + 1, sequence)

    def record_remove(self, key: Hashable) -> None:
        self._counts.pop(key, None)

    def select_victim(self) -> Optional[Hashable]:
        if not self._counts:
            return None
        return min(self._counts, key=self._counts.__getitem__)

    def clear(self) -> None:
        self._counts.clear()

    def frequency(self, key: Hashable) -> int:
        """Number of recorded touches for key (0 if untracked)."""
        return self._counts.get(key, (0, 0))[0]

    def __len__(self) -> int:
        return len(self._counts)


POLICIES: Dict[str, Type[EvictionPolicy]] = {
    LRUEvictionPolicy.name: LRUEvictionPolicy,
    FIFOEvictionPolicy.name: FIFOEvictionPolicy,
    LFUEvictionPolicy.name: LFUEvictionPolicy,
}


def create_policy(name: str) -> EvictionPolicy:
    """
    Build a policy instance from its name.

    Args:
        name: One of "lru", "fifo", "lfu" (case-insensitive)

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return POLICIES[name.strip().lower()]()
    except KeyError:
        known = ", ".join(sorted(POLICIES))
        raise ValueError(f"unknown eviction policy {name!r} (expected one of: {known})") from None

