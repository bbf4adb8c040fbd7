"""Exception types raised across chronicler."""

from __future__ import annotations


class ChroniclerError(Exception):
    """Base class for chronicler errors."""


class GenerationError(ChroniclerError):
    """A generation call failed for a reason other than rate limiting."""

    def __init__(self, model: str, message: str) -> None:
        super().__init__(f"Generation failed on {model}: {message}")
        self.model = model
        self.message = message


class CompactionError(ChroniclerError):
    """Compaction failed after the log was already trimmed.

    ``dropped`` is the number of records that left the log without making it
    into memory.
    """

    def __init__(self, scope: str, dropped: int, cause: Exception) -> None:
        super().__init__(f"Compaction of {scope} failed, {dropped} records dropped: {cause}")
        self.scope = scope
        self.dropped = dropped
        self.cause = cause
