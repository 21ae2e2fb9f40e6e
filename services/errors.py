"""Error types raised while turning uploads into readings."""

from __future__ import annotations


class RowRejected(ValueError):
    """A single input row cannot become a reading and is dropped."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class BatchInvalid(ValueError):
    """The whole upload cannot be read as a table; nothing is derived from it."""
