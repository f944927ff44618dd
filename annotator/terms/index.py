"""
Term Index - records grouped by input string, ranked by frequency.

Provides:
- Ranked listing of distinct inputs (most frequent first)
- Paginated per-term occurrence lists

Rules:
------
- Built once after load, read-only afterwards
- Grouping is by exact input string equality
- Ties in the ranking keep first-appearance order, so a build is
  deterministic for a given record sequence
- Answered status is NOT stored here; lookups ask the caller for it so
  it always reflects the live unanswered set
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from annotator.models import Record
from .errors import TermNotFoundError

logger = logging.getLogger(__name__)


def clamp_range(low: int, size: int, maximum: int) -> Tuple[int, int]:
    """
    Clamp the half-open window [low, low + size) to [0, maximum].

    Never yields from_ > upto; a window starting past the end is empty.

    Raises:
        ValueError: If low or size is negative
    """
    if low < 0:
        raise ValueError(f"low must be >= 0, got {low}")
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size}")
    return min(low, maximum), min(low + size, maximum)


@dataclass(frozen=True)
class TermFrequency:
    term: str
    freq: int


@dataclass(frozen=True)
class TermOccurrence:
    """One record that has the looked-up term as its input."""

    record_index: int
    source_id: Optional[str]
    restricted: bool
    answered: bool


@dataclass(frozen=True)
class TermPage:
    """A page of occurrences for one term."""

    term: str
    from_: int
    size: int
    total: int
    restricted_count: int
    occurrences: List[TermOccurrence]


class TermIndex:
    """
    In-memory index from input string to record indices.

    Holds the record sequence by reference only to read `id` and
    `restricted`, which never change after load.
    """

    def __init__(
        self,
        records: Sequence[Record],
        by_term: Dict[str, List[int]],
        ranked: List[str],
    ):
        self._records = records
        self._by_term = by_term
        self._ranked = ranked

    @classmethod
    def build(cls, records: Sequence[Record]) -> "TermIndex":
        """
        Group record indices by input and rank inputs by frequency.

        Args:
            records: Loaded record sequence, in index order

        Returns:
            A read-only TermIndex
        """
        by_term: Dict[str, List[int]] = {}
        for index, record in enumerate(records):
            by_term.setdefault(record.input, []).append(index)

        # sorted() is stable and dicts keep insertion order
        ranked = sorted(by_term, key=lambda term: len(by_term[term]), reverse=True)

        logger.info(f"[Terms] {len(ranked)} distinct input strings in {len(records)} records")
        return cls(records, by_term, ranked)

    @property
    def term_count(self) -> int:
        return len(self._ranked)

    def __contains__(self, term: object) -> bool:
        return term in self._by_term

    def occurrences(self, term: str) -> List[int]:
        """
        Record indices with this input, in index order.

        Raises:
            TermNotFoundError: If no record has this input
        """
        try:
            return list(self._by_term[term])
        except KeyError:
            raise TermNotFoundError(term) from None

    def list_terms(self, from_: int = 0, size: int = 10) -> List[TermFrequency]:
        """
        List a page of the frequency ranking.

        Args:
            from_: Rank of the first term to return
            size: Maximum number of terms to return

        Returns:
            Terms with their occurrence counts, most frequent first.
            Empty if from_ is past the end.
        """
        start, stop = clamp_range(from_, size, len(self._ranked))
        return [
            TermFrequency(term=term, freq=len(self._by_term[term]))
            for term in self._ranked[start:stop]
        ]

    def lookup_term(
        self,
        term: str,
        from_: int,
        size: int,
        is_answered: Callable[[int], bool],
    ) -> TermPage:
        """
        Get a page of the records whose input is term.

        Occurrences are ordered restricted-access first, then by record
        index, before the page is cut.

        Args:
            term: Exact input string
            from_: Position of the first occurrence to return
            size: Maximum number of occurrences to return
            is_answered: Live answered-status probe for a record index.
                The caller is responsible for any locking around it.

        Raises:
            TermNotFoundError: If no record has this input
        """
        indices = self._by_term.get(term)
        if indices is None:
            raise TermNotFoundError(term)

        start, stop = clamp_range(from_, size, len(indices))

        ordered = sorted(
            indices,
            key=lambda i: (not self._records[i].restricted, i),
        )
        restricted_count = sum(1 for i in indices if self._records[i].restricted)

        occurrences = [
            TermOccurrence(
                record_index=i,
                source_id=self._records[i].id,
                restricted=self._records[i].restricted,
                answered=is_answered(i),
            )
            for i in ordered[start:stop]
        ]

        return TermPage(
            term=term,
            from_=from_,
            size=size,
            total=len(indices),
            restricted_count=restricted_count,
            occurrences=occurrences,
        )
