"""
Snapshot Persistence Module

Reads and writes the flat-file snapshot of a cache.

File Format (UTF-8, one record per line, oldest first):
    <key>=<value>\\t<sequence>\\n

There is no header, footer or escaping. A record is read by splitting the
line once on the first tab, then the left part once on the first "=".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..config.settings import settings
from ..exceptions import SnapshotEncodeError, SnapshotParseError

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "="
SEQUENCE_SEPARATOR = "\t"

# Characters that would split a record in the wrong place on reload
_FORBIDDEN_IN_KEY = (KEY_SEPARATOR, SEQUENCE_SEPARATOR, "\n", "\r")
_FORBIDDEN_IN_VALUE = (SEQUENCE_SEPARATOR, "\n", "\r")

Decoder = Callable[[str], Any]


@dataclass
class SnapshotRecord:
    """One decoded snapshot line."""
    key: Any
    value: Any
    sequence: int


@dataclass
class Snapshot:
    """
    Result of reading a snapshot file.

    Attributes:
        records: Decoded records in ascending sequence order, one per key
        last_sequence: Highest sequence seen in the file (0 if none)
        skipped: Number of lines that were ignored
    """
    records: List[SnapshotRecord] = field(default_factory=list)
    last_sequence: int = 0
    skipped: int = 0


def encode_record(key: Any, value: Any, sequence: int) -> str:
    """
    Format a single snapshot line.

    Raises:
        SnapshotEncodeError: If the key or value text would not survive a reload
    """
    key_text = str(key)
    value_text = str(value)

    for char in _FORBIDDEN_IN_KEY:
        if char in key_text:
            raise SnapshotEncodeError(f"key contains unsupported character {char!r}", text=key_text)
    for char in _FORBIDDEN_IN_VALUE:
        if char in value_text:
            raise SnapshotEncodeError(f"value contains unsupported character {char!r}", text=value_text)

    return f"{key_text}{KEY_SEPARATOR}{value_text}{SEQUENCE_SEPARATOR}{sequence}\n"


def split_record(line: str) -> Optional[Tuple[str, str, str]]:
    """
    Split a raw line into its (key, value, sequence) texts.

    Returns:
        The three fields, or None when a separator is missing
    """
    keyvalue, sep, sequence_text = line.partition(SEQUENCE_SEPARATOR)
    if not sep:
        return None
    key_text, sep, value_text = keyvalue.partition(KEY_SEPARATOR)
    if not sep:
        return None
    return key_text, value_text, sequence_text


def parse_sequence(text: str) -> int:
    """Parse a non-negative decimal sequence number."""
    if not text or not text.isascii() or not text.isdigit():
        raise ValueError(f"invalid sequence number {text!r}")
    return int(text)


def write_snapshot(path: str, records: Iterable[Tuple[Any, Any, int]]) -> int:
    """
    Write records to path, replacing any previous content.

    Every line is encoded before the file is opened, so an unencodable
    record leaves the existing file untouched.

    Args:
        path: Target file
        records: (key, value, sequence) tuples, already in the desired order

    Returns:
        Number of records written
    """
    lines = [encode_record(key, value, sequence) for key, value, sequence in records]

    with open(path, "w", encoding=settings.ENCODING, newline="\n") as fh:
        fh.writelines(lines)

    return len(lines)


def read_snapshot(
    path: str,
    key_type: Decoder = str,
    value_type: Decoder = str,
    strict: bool = True,
) -> Snapshot:
    """
    Read and decode a snapshot file.

    Lines missing either separator are skipped. A field that key_type,
    value_type or the sequence parser rejects aborts the whole read when
    strict is True, and only skips that line otherwise. When a key
    appears on several lines the last one wins.

    Args:
        path: Snapshot file (must exist)
        key_type: Callable turning key text into a key
        value_type: Callable turning value text into a value
        strict: Abort on the first undecodable field

    Returns:
        Snapshot with records sorted by ascending sequence

    Raises:
        SnapshotParseError: On an undecodable field in strict mode
        OSError: If the file cannot be opened or read
    """
    snapshot = Snapshot()
    by_key: Dict[Any, SnapshotRecord] = {}

    with open(path, "r", encoding=settings.ENCODING) as fh:
        for line_number, line in enumerate(fh, start=1):
            fields = split_record(line.rstrip("\n"))
            if fields is None:
                logger.debug(f"Skipping malformed snapshot line {path}:{line_number}")
                snapshot.skipped += 1
                continue

            key_text, value_text, sequence_text = fields
            try:
                key = key_type(key_text)
                value = value_type(value_text)
                sequence = parse_sequence(sequence_text)
            except (TypeError, ValueError) as exc:
                if strict:
                    raise SnapshotParseError(
                        f"cannot decode snapshot record: {exc}",
                        path=str(path),
                        line_number=line_number,
                    ) from exc
                logger.warning(f"Skipping undecodable snapshot record {path}:{line_number}: {exc}")
                snapshot.skipped += 1
                continue

            snapshot.last_sequence = max(snapshot.last_sequence, sequence)
            by_key.pop(key, None)
            by_key[key] = SnapshotRecord(key=key, value=value, sequence=sequence)

    # sorted() is stable: equal sequences keep their file order
    snapshot.records = sorted(by_key.values(), key=lambda record: record.sequence)
    return snapshot
