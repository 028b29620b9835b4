"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import pytest

from seqcache.cache.eviction import LRUEvictionPolicy, FIFOEvictionPolicy, LFUEvictionPolicy
from seqcache.cache.store import Cache


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def cache() -> Cache:
    """Create a fresh LRU Cache with capacity 100."""
    return Cache(capacity=100, policy=LRUEvictionPolicy())


@pytest.fixture
def small_cache() -> Cache:
    """Create an LRU Cache with small capacity for eviction testing (5 entries)."""
    return Cache(capacity=5, policy=LRUEvictionPolicy())


# ============================================================================
# Policy Fixtures
# ============================================================================

@pytest.fixture
def lru_policy() -> LRUEvictionPolicy:
    return LRUEvictionPolicy()


@pytest.fixture
def fifo_policy() -> FIFOEvictionPolicy:
    return FIFOEvictionPolicy()


@pytest.fixture
def lfu_policy() -> LFUEvictionPolicy:
    return LFUEvictionPolicy()


# ============================================================================
# Snapshot Fixtures
# ============================================================================

@pytest.fixture
def snapshot_path(tmp_path) -> str:
    """Path of a snapshot file that does not exist yet."""
    return str(tmp_path / "snapshot.txt")


@pytest.fixture
def write_snapshot_text(snapshot_path):
    """
    Factory fixture writing raw text to the snapshot path.

    Usage:
        def test_something(write_snapshot_text):
            path = write_snapshot_text("a=1\\t1\\n")
    """
    def factory(text: str) -> str:
        with open(snapshot_path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        return snapshot_path
    return factory


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
