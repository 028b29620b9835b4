#!/usr/bin/env python3
"""
seqcache Command-Line Entry Point

Operates on a snapshot file: every invocation loads the cache, applies one
command and writes the snapshot back when the command changed anything.

Usage:
    seqcache --path cache.txt put A valeur_A    # Store a value
    seqcache --path cache.txt get A             # Print a value (exit 1 on miss)
    seqcache --path cache.txt delete A          # Remove a key
    seqcache --path cache.txt dump              # Print entries, oldest first
    seqcache --path cache.txt stats             # Print cache statistics
    seqcache --path cache.txt demo              # Replay the A/B/C/D scenario
    seqcache --capacity 3 --policy fifo ...     # Custom capacity and policy

FIFO and LFU state is not part of the snapshot: each invocation rebuilds
it from recency order.

Environment Variables:
    SEQCACHE_CAPACITY       - Default capacity
    SEQCACHE_PERSIST_PATH   - Default snapshot path
    SEQCACHE_POLICY         - Default eviction policy (lru, fifo, lfu)
    SEQCACHE_DEBUG          - Enable debug logging (true/false)
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from .cache.eviction import POLICIES, create_policy
from .cache.store import Cache
from .config.settings import settings
from .exceptions import CacheError

EXIT_OK = 0
EXIT_MISS = 1
EXIT_ERROR = 2

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="seqcache",
        description="seqcache: key-value cache backed by a snapshot file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--path",
        type=str,
        default=settings.PERSIST_PATH or "seqcache.txt",
        help="Snapshot file to load and persist",
    )

    parser.add_argument(
        "--capacity",
        type=int,
        default=settings.CAPACITY,
        help="Maximum number of entries in the cache",
    )

    parser.add_argument(
        "--policy",
        choices=sorted(POLICIES),
        default=settings.POLICY,
        help="Eviction policy",
    )

    parser.add_argument(
        "--lenient",
        action="store_true",
        default=not settings.STRICT_LOAD,
        help="Skip undecodable snapshot records instead of failing",
    )

    parser.add_argument(
        "--trim",
        action="store_true",
        default=settings.TRIM_ON_LOAD,
        help="Evict down to capacity after loading",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    get_cmd = commands.add_parser("get", help="Print the value stored for a key")
    get_cmd.add_argument("key")

    put_cmd = commands.add_parser("put", help="Store a value")
    put_cmd.add_argument("key")
    put_cmd.add_argument("value")

    delete_cmd = commands.add_parser("delete", help="Remove a key")
    delete_cmd.add_argument("key")

    commands.add_parser("dump", help="Print every entry, oldest first")
    commands.add_parser("stats", help="Print cache statistics")
    commands.add_parser("demo", help="Replay the capacity-3 LRU scenario against --path")

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def load_cache(args: argparse.Namespace) -> Cache:
    """Load the cache described by the command line."""
    return Cache.load(
        args.capacity,
        args.path,
        policy=create_policy(args.policy),
        strict=not args.lenient,
        trim=args.trim,
    )


def print_entries(cache: Cache) -> None:
    """Print entries as `key=value<TAB>sequence`, oldest first."""
    for key, entry in cache.items():
        print(f"{key}={entry.value}\t{entry.sequence}")


def run_demo(args: argparse.Namespace) -> int:
    """Put A, B, C; touch B; put D; persist; reload and show what survived."""
    cache = Cache(capacity=3, persist_path=args.path, policy=create_policy(args.policy))

    cache.put("A", "valeur_A")
    cache.put("B", "valeur_B")
    cache.put("C", "valeur_C")
    cache.get("B")
    cache.put("D", "valeur_D")

    cache.persist()
    print(f"Cache saved to {args.path}")

    reloaded = Cache.load(3, args.path, policy=create_policy(args.policy))
    print_entries(reloaded)
    return EXIT_OK


def cmd_get(cache: Cache, args: argparse.Namespace) -> int:
    value = cache.get(args.key)
    if value is None:
        print(f"{args.key}: not found", file=sys.stderr)
        return EXIT_MISS
    print(value)
    # A hit refreshes recency, which is part of the snapshot
    cache.persist()
    return EXIT_OK


def cmd_put(cache: Cache, args: argparse.Namespace) -> int:
    previous = cache.put(args.key, args.value)
    if previous is not None:
        logger.debug(f"Replaced {args.key!r} (was {previous!r})")
    cache.persist()
    return EXIT_OK


def cmd_delete(cache: Cache, args: argparse.Namespace) -> int:
    if not cache.delete(args.key):
        print(f"{args.key}: not found", file=sys.stderr)
        return EXIT_MISS
    cache.persist()
    return EXIT_OK


def cmd_dump(cache: Cache, args: argparse.Namespace) -> int:
    print_entries(cache)
    return EXIT_OK


def cmd_stats(cache: Cache, args: argparse.Namespace) -> int:
    for name, value in cache.get_stats().items():
        print(f"{name}: {value}")
    return EXIT_OK


# Sub-commands that run against the loaded snapshot
COMMANDS: Dict[str, Callable[[Cache, argparse.Namespace], int]] = {
    "get": cmd_get,
    "put": cmd_put,
    "delete": cmd_delete,
    "dump": cmd_dump,
    "stats": cmd_stats,
}


def run_command(args: argparse.Namespace) -> int:
    """Execute a parsed command and return the process exit code."""
    if args.command == "demo":
        return run_demo(args)
    return COMMANDS[args.command](load_cache(args), args)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command-line tool."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        return run_command(args)
    except (CacheError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
