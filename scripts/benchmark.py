#!/usr/bin/env python3
"""
Benchmark Script for seqcache

Times the Cache operations for every eviction policy, next to a plain dict
baseline, plus a snapshot persist/load cycle.

Usage:
    python scripts/benchmark.py                    # Run all benchmarks
    python scripts/benchmark.py --operations 5000  # Custom operation count
    python scripts/benchmark.py --policy lru       # Only one policy
    python scripts/benchmark.py --profile          # Enable cProfile
"""

import argparse
import os
import statistics
import sys
import tempfile
import time
from typing import Any, Callable, Dict, List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from seqcache.cache.eviction import POLICIES, create_policy
from seqcache.cache.store import Cache


def measure_time(func: Callable, iterations: int = 1) -> Dict[str, float]:
    """Measure execution time statistics."""
    times = []

    for _ in range(iterations):
        start = time.perf_counter()
        func()
        times.append((time.perf_counter() - start) * 1000)

    return {
        "min_ms": min(times),
        "max_ms": max(times),
        "mean_ms": statistics.mean(times),
        "total_ms": sum(times),
    }


class Benchmark:
    """Collection of benchmarks for one eviction policy."""

    def __init__(self, operations: int = 10000, policy: str = "lru"):
        self.operations = operations
        self.policy = policy
        self.keys = [str(i) for i in range(operations)]
        self.values = [f"value_{i}" for i in range(operations)]

    def _cache(self, capacity: int, path: str = None) -> Cache:
        return Cache(capacity=capacity, persist_path=path, policy=create_policy(self.policy))

    def _result(self, label: str, func: Callable, count: int = None) -> Dict[str, Any]:
        count = count or self.operations
        stats = measure_time(func)
        stats["ops_per_second"] = count / (stats["total_ms"] / 1000) if stats["total_ms"] else 0.0
        stats["operation"] = f"{label} [{self.policy}]"
        stats["count"] = count
        return stats

    def benchmark_put(self) -> Dict[str, Any]:
        cache = self._cache(self.operations)

        def run():
            for key, value in zip(self.keys, self.values):
                cache.put(key, value)

        return self._result("PUT", run)

    def benchmark_get(self) -> Dict[str, Any]:
        cache = self._cache(self.operations)
        for key, value in zip(self.keys, self.values):
            cache.put(key, value)

        def run():
            for key in self.keys:
                cache.get(key)

        return self._result("GET (hit)", run)

    def benchmark_get_miss(self) -> Dict[str, Any]:
        cache = self._cache(self.operations)
        miss_keys = [f"missing_{i}" for i in range(self.operations)]

        def run():
            for key in miss_keys:
                cache.get(key)

        return self._result("GET (miss)", run)

    def benchmark_eviction(self) -> Dict[str, Any]:
        """Every put past the first tenth evicts one entry."""
        cache = self._cache(max(1, self.operations // 10))

        def run():
            for key, value in zip(self.keys, self.values):
                cache.put(key, value)

        return self._result("PUT (with eviction)", run)

    def benchmark_snapshot(self) -> Dict[str, Any]:
        """persist() followed by load() of a full cache."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "snapshot.txt")
            cache = self._cache(self.operations, path)
            for key, value in zip(self.keys, self.values):
                cache.put(key, value)

            def run():
                cache.persist()
                Cache.load(self.operations, path, policy=create_policy(self.policy))

            return self._result("persist + load", run)

    def run_all(self) -> List[Dict[str, Any]]:
        """Run all benchmarks for this policy."""
        benchmarks = [
            self.benchmark_put,
            self.benchmark_get,
            self.benchmark_get_miss,
            self.benchmark_eviction,
            self.benchmark_snapshot,
        ]

        results = []
        for func in benchmarks:
            result = func()
            print(f"Running: {result['operation']}... {result['ops_per_second']:,.0f} ops/sec")
            results.append(result)
        return results


def benchmark_dict_baseline(operations: int) -> Dict[str, Any]:
    """Plain dict lookups, for comparison with GET (hit)."""
    data = {str(i): f"value_{i}" for i in range(operations)}
    keys = list(data)

    def run():
        for key in keys:
            data.get(key)

    stats = measure_time(run)
    stats["ops_per_second"] = operations / (stats["total_ms"] / 1000) if stats["total_ms"] else 0.0
    stats["operation"] = "dict GET (baseline)"
    stats["count"] = operations
    return stats


def print_results(results: List[Dict[str, Any]]):
    """Print benchmark results in a table."""
    print()
    print("=" * 70)
    print(f"{'Operation':<34} {'Ops/sec':>12} {'Mean (ms)':>10} {'Total (ms)':>10}")
    print("-" * 70)

    for r in results:
        print(f"{r['operation']:<34} {r['ops_per_second']:>12,.0f} "
              f"{r['mean_ms']:>10.3f} {r['total_ms']:>10.1f}")

    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark seqcache policies",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--operations", "-n",
        type=int,
        default=10000,
        help="Number of operations per benchmark"
    )
    parser.add_argument(
        "--policy",
        choices=sorted(POLICIES),
        action="append",
        help="Policy to benchmark (repeatable, default: all)"
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile profiling"
    )

    args = parser.parse_args()
    policies = args.policy or sorted(POLICIES)

    def run() -> List[Dict[str, Any]]:
        results = [benchmark_dict_baseline(args.operations)]
        for name in policies:
            results.extend(Benchmark(operations=args.operations, policy=name).run_all())
        return results

    print("seqcache Benchmark")
    print(f"Operations per test: {args.operations:,}")
    print()

    if args.profile:
        import cProfile
        import pstats

        profiler = cProfile.Profile()
        profiler.enable()
        results = run()
        profiler.disable()

        print_results(results)
        print()
        print("Profiling Results (top 20):")
        pstats.Stats(profiler).sort_stats('cumulative').print_stats(20)
    else:
        print_results(run())


if __name__ == "__main__":
    main()
