"""
Persistence-specific errors.

All errors inherit from PersistenceError for easy catching.
Load failures are fatal to the service; save failures are not.
"""

from typing import Optional


class PersistenceError(Exception):
    """Base exception for persistence operations."""

    pass


class StorageIOError(PersistenceError):
    """Raised when the record file cannot be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"I/O failure on {path}: {reason}")


class DecodeError(PersistenceError):
    """
    Raised when an entry in the record file is malformed.

    `entry` is the zero-based number of the entry that failed,
    `offset` the character offset in the decoded text where it starts
    (or where JSON parsing stopped).
    """

    def __init__(self, path: str, entry: int, offset: Optional[int], reason: str):
        self.path = path
        self.entry = entry
        self.offset = offset
        self.reason = reason
        where = f"entry {entry}"
        if offset is not None:
            where += f" (offset {offset})"
        super().__init__(f"Cannot decode {path} at {where}: {reason}")


class EncodeError(PersistenceError):
    """Raised when a record cannot be serialised during a save."""

    def __init__(self, path: str, index: int, reason: str):
        self.path = path
        self.index = index
        self.reason = reason
        super().__init__(f"Cannot encode record {index} for {path}: {reason}")
