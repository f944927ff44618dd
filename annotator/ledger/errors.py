"""
Ledger-specific error types.

All errors inherit from LedgerError for easy catching.
None of them are retryable with the same arguments: the caller must pick
a different record or fix its input.
"""


class LedgerError(Exception):
    """Base exception for all ledger failures."""
    pass


class RecordOutOfRangeError(LedgerError, IndexError):
    """Raised when a record index is not a valid position."""

    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        super().__init__(f"Record index {index} out of range [0, {total})")


class AlreadyAnsweredError(LedgerError):
    """
    Raised when an answer is submitted for a record that is not awaiting one.

    Covers both records answered earlier (possibly by a concurrent caller)
    and indices outside the record range. `done` is the number of answered
    records at the time of the rejected call.
    """

    def __init__(self, index: int, done: int):
        self.index = index
        self.done = done
        super().__init__(f"Record {index} already answered")


class NoUnansweredRecordsError(LedgerError):
    """Raised when asking for an unanswered record and none are left."""

    def __init__(self):
        super().__init__("No unanswered records left")


class InvalidAnswerError(LedgerError, ValueError):
    """Raised when a submitted answer is unusable."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid answer for record {index}: {reason}")
