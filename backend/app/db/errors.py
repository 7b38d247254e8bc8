"""Storage-layer error types surfaced to the API error handlers."""

from __future__ import annotations


class StorageUnavailableError(RuntimeError):
    """Raised when a mutation could not be committed after exhausting retries.

    The enclosing transaction has been rolled back, so callers may safely retry
    the whole request.
    """

    code = "storage_unavailable"

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(message)
        self.message = message
