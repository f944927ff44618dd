"""
Terms module - frequency-ranked grouping of records by input string.
"""

from .index import TermIndex, TermFrequency, TermOccurrence, TermPage, clamp_range
from .errors import TermIndexError, TermNotFoundError

__all__ = [
    "TermIndex",
    "TermFrequency",
    "TermOccurrence",
    "TermPage",
    "clamp_range",
    "TermIndexError",
    "TermNotFoundError",
]
