"""
Annotation ledger.

Owns the loaded records, the set of records still awaiting an answer,
and (optionally) the term index built over them.

The ledger provides:
- Record retrieval by stable index
- Answer submission (the single point where a record becomes answered)
- Random choice of an unanswered record
- Consistent todo/done statistics
- Explicit save, and save-if-dirty for the periodic autosave

LOCKING:
--------
One ReadWriteLock guards the unanswered set, every record's `golden`
field, the change counter and `last_change`. Reads take the shared side. Only the set
mutation + field write of submit_answer takes the exclusive side, and
never across I/O.

A save serialises the live records while holding the shared side, so no
`golden` write can land in the middle of a record's encoding. Saves are
serialised against each other by a separate plain lock, which also guards
`last_save` and the count of changes that save covered. Dirty checks
compare the two counters, never wall-clock times.
"""

import logging
import os
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Union

from annotator.models import Record
from annotator.persistence import PersistenceError, load_records, save_records
from annotator.terms import TermFrequency, TermIndex, TermPage
from .errors import (
    AlreadyAnsweredError,
    InvalidAnswerError,
    LedgerError,
    NoUnansweredRecordsError,
    RecordOutOfRangeError,
)
from .intset import SparseIndexSet
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LedgerStatistics:
    """Snapshot of annotation progress."""

    todo: int
    done: int

    @property
    def total(self) -> int:
        return self.todo + self.done


class AnnotationLedger:
    """
    Thread-safe store of annotation records.

    Records are never added, removed or reordered after construction.
    The unanswered set only shrinks; it is rebuilt only by loading again.
    """

    def __init__(
        self,
        records: Sequence[Record],
        path: Optional[Union[str, os.PathLike]] = None,
        build_terms: bool = True,
    ):
        """
        Initialize ledger.

        Args:
            records: Records in index order. The ledger takes ownership.
            path: Record file that save() writes to by default
            build_terms: Build the term index for list_terms/lookup_term
        """
        self._records: List[Record] = list(records)
        self._path: Optional[Path] = Path(path) if path is not None else None

        self._lock = ReadWriteLock()
        self._save_lock = threading.Lock()
        self._rng = random.Random()

        self._unanswered = SparseIndexSet(len(self._records))
        for index, record in enumerate(self._records):
            if record.golden == "":
                self._unanswered.add(index)

        self._last_change: Optional[datetime] = None
        self._last_save: Optional[datetime] = None
        # Dirty tracking uses counters; the datetimes are for display only
        self._changes = 0
        self._saved_changes = 0

        self._terms: Optional[TermIndex] = None
        if build_terms:
            self._terms = TermIndex.build(self._records)

        logger.info(
            f"[Ledger] {len(self._records)} records, "
            f"{len(self._unanswered)} unanswered"
        )

    @classmethod
    def from_path(
        cls,
        path: Union[str, os.PathLike],
        build_terms: bool = True,
    ) -> "AnnotationLedger":
        """
        Load a ledger from a record file.

        The path is kept as the default destination for save().

        Raises:
            StorageIOError: If the file cannot be read
            DecodeError: If the file is malformed
        """
        return cls(load_records(path), path=path, build_terms=build_terms)

    # Properties

    @property
    def total(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def terms(self) -> Optional[TermIndex]:
        return self._terms

    @property
    def last_change(self) -> Optional[datetime]:
        with self._lock.read_locked():
            return self._last_change

    @property
    def last_save(self) -> Optional[datetime]:
        with self._save_lock:
            return self._last_save

    # Reads

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._records):
            raise RecordOutOfRangeError(index, len(self._records))

    def get_record(self, index: int) -> Record:
        """
        Get a copy of the record at index.

        Raises:
            RecordOutOfRangeError: If index is not a valid position
        """
        self._check_index(index)
        with self._lock.read_locked():
            return self._records[index].model_copy(deep=True)

    def is_answered(self, index: int) -> bool:
        self._check_index(index)
        with self._lock.read_locked():
            return not self._unanswered.contains(index)

    def statistics(self) -> LedgerStatistics:
        with self._lock.read_locked():
            todo = len(self._unanswered)
        return LedgerStatistics(todo=todo, done=len(self._records) - todo)

    def pick_unanswered(self, rng: Optional[random.Random] = None) -> int:
        """
        Pick an unanswered record uniformly at random.

        Args:
            rng: Random source, for reproducible picks in tests

        Returns:
            Index of an unanswered record

        Raises:
            NoUnansweredRecordsError: If every record is answered
        """
        rng = rng or self._rng
        with self._lock.read_locked():
            remaining = len(self._unanswered)
            if remaining == 0:
                raise NoUnansweredRecordsError()
            return self._unanswered.at(rng.randrange(remaining))

    def dump(self) -> List[Record]:
        """Copies of all records, in index order."""
        with self._lock.read_locked():
            return [record.model_copy(deep=True) for record in self._records]

    # Mutation

    def submit_answer(self, index: int, answer: str) -> int:
        """
        Store the golden answer for the record at index.

        At most one caller ever moves a given record from unanswered to
        answered; every later (or concurrent, losing) call is rejected.

        Args:
            index: Record index
            answer: Candidate id, or "?" for no correct candidate

        Returns:
            Number of answered records, including this one

        Raises:
            InvalidAnswerError: If answer is empty
            AlreadyAnsweredError: If the record is not awaiting an answer
                (already answered, or index out of range)
        """
        if not answer:
            raise InvalidAnswerError(index, "answer must not be empty")

        with self._lock.write_locked():
            done = len(self._records) - len(self._unanswered)

            if not self._unanswered.remove(index):
                raise AlreadyAnsweredError(index, done)

            self._records[index].golden = answer
            self._changes += 1
            self._last_change = _now()
            done += 1

        logger.debug(f"[Ledger] Record {index} answered ({done}/{len(self._records)})")
        return done

    # Persistence

    def _is_dirty_locked(self) -> bool:
        return self._changes > self._saved_changes

    def is_dirty(self) -> bool:
        """Check whether answers arrived since the last save."""
        with self._save_lock:
            with self._lock.read_locked():
                return self._is_dirty_locked()

    def _resolve_path(self, path: Optional[Union[str, os.PathLike]]) -> Path:
        if path is not None:
            return Path(path)
        if self._path is None:
            raise LedgerError("No path configured for saving")
        return self._path

    def _save_locked(self, target: Path) -> None:
        # Caller holds _save_lock and the shared side of _lock
        started = _now()
        changes = self._changes
        logger.info(f"[Ledger] Saving to {target}")
        try:
            save_records(target, self._records)
        except PersistenceError:
            logger.error(f"[Ledger] Save to {target} failed", exc_info=True)
            raise

        if target == self._path:
            self._last_save = started
            self._saved_changes = changes

    def save(self, path: Optional[Union[str, os.PathLike]] = None) -> None:
        """
        Write all records to path (default: the path the ledger was loaded from).

        In-memory state is untouched by a failed save; a later save can retry.

        Raises:
            LedgerError: If no path is given or configured
            PersistenceError: If the write fails
        """
        target = self._resolve_path(path)
        with self._save_lock:
            with self._lock.read_locked():
                self._save_locked(target)

    def save_if_dirty(self) -> bool:
        """
        Save to the configured path if answers arrived since the last save.

        Returns:
            True if a save was performed

        Raises:
            LedgerError: If no path is configured
            PersistenceError: If the write fails
        """
        target = self._resolve_path(None)
        with self._save_lock:
            with self._lock.read_locked():
                if not self._is_dirty_locked():
                    return False
                self._save_locked(target)
        return True

    # Terms

    def _require_terms(self) -> TermIndex:
        if self._terms is None:
            raise LedgerError("Term index not built for this ledger")
        return self._terms

    def list_terms(self, from_: int = 0, size: int = 10) -> List[TermFrequency]:
        """Page of distinct inputs, most frequent first."""
        return self._require_terms().list_terms(from_, size)

    def lookup_term(self, term: str, from_: int = 0, size: int = 10) -> TermPage:
        """
        Page of records whose input is term, with live answered flags.

        Raises:
            TermNotFoundError: If no record has this input
        """
        terms = self._require_terms()
        with self._lock.read_locked():
            return terms.lookup_term(
                term,
                from_,
                size,
                is_answered=lambda i: not self._unanswered.contains(i),
            )
