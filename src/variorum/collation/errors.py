"""Errors raised by the collation core.

Only malformed or oversized input is a user-facing condition. Tokens without
match candidates, confirmed transpositions and long omissions are ordinary
results, not errors.
"""

from __future__ import annotations


class CollationError(Exception):
    """Base class for collation failures."""


class InvalidWitness(CollationError):
    """Raised when a witness is empty or its token sequence is malformed.

    Raised before the witness touches the graph, so no partial merge happens.
    """

    def __init__(self, sigil: str, message: str):
        self.sigil = sigil
        super().__init__(f"Invalid witness {sigil!r}: {message}")


class OversizeInput(CollationError):
    """Raised when a configured size limit is exceeded."""

    def __init__(self, what: str, limit: int, actual: int):
        self.what = what
        self.limit = limit
        self.actual = actual
        super().__init__(f"{what} exceeds limit: {actual} > {limit}")


class SearchExhausted(CollationError):
    """The decision search ran out of nodes without reaching a goal.

    The decision tree always contains a path that rejects every remaining
    cluster, so this indicates a defect in the search, not bad input.
    """


class SearchCancelled(CollationError):
    """The decision search was stopped by its caller before finishing.

    Raised before the graph is touched, so the merge leaves no trace.
    """
