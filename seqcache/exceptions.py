"""Custom exceptions for seqcache."""

from typing import Optional


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error description
        error_code: Optional error code for programmatic handling
    """

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class PersistenceNotConfiguredError(CacheError):
    """persist() was called on a cache that has no snapshot path."""

    def __init__(self, message: str = "no persist path configured for this cache"):
        super().__init__(message, error_code="NO_PERSIST_PATH")


class SnapshotParseError(CacheError, ValueError):
    """A snapshot record has a key, value or sequence field that cannot be decoded.

    Attributes:
        path: Snapshot file being loaded
        line_number: 1-based line of the offending record
    """

    def __init__(self, message: str, path: Optional[str] = None, line_number: Optional[int] = None):
        super().__init__(message, error_code="SNAPSHOT_PARSE")
        self.path = path
        self.line_number = line_number

    def __str__(self) -> str:
        if self.path is not None and self.line_number is not None:
            return f"{super().__str__()} ({self.path}:{self.line_number})"
        return super().__str__()


class SnapshotEncodeError(CacheError, ValueError):
    """A key or value contains text the snapshot format cannot represent.

    Attributes:
        text: The offending encoded key or value
    """

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message, error_code="SNAPSHOT_ENCODE")
        self.text = text
