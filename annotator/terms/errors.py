"""
Term index error types.
"""


class TermIndexError(Exception):
    """Base exception for term index failures."""
    pass


class TermNotFoundError(TermIndexError, KeyError):
    """Raised when looking up a term no record has as its input."""

    def __init__(self, term: str):
        self.term = term
        super().__init__(f"Term not found: {term!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
