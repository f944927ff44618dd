"""
Ledger module - thread-safe record store with answer tracking.
"""

from .intset import SparseIndexSet
from .rwlock import ReadWriteLock
from .ledger import AnnotationLedger, LedgerStatistics
from .autosave import PeriodicSaver, AUTOSAVE_INTERVAL_SECONDS
from .errors import (
    LedgerError,
    RecordOutOfRangeError,
    AlreadyAnsweredError,
    NoUnansweredRecordsError,
    InvalidAnswerError,
)

__all__ = [
    "SparseIndexSet",
    "ReadWriteLock",
    "AnnotationLedger",
    "LedgerStatistics",
    "PeriodicSaver",
    "AUTOSAVE_INTERVAL_SECONDS",
    "LedgerError",
    "RecordOutOfRangeError",
    "AlreadyAnsweredError",
    "NoUnansweredRecordsError",
    "InvalidAnswerError",
]
