"""
Exceptions raised by the triage client.
"""

from typing import Optional


class TriageError(Exception):
    """Base class for triage client errors."""
    pass


class BackendFetchError(TriageError):
    """Raised when a stream cannot be fetched or decoded from the backend."""

    def __init__(self, stream: str, message: str, status_code: Optional[int] = None):
        self.stream = stream
        self.status_code = status_code
        super().__init__(f"{stream}: {message}")


class CoordinatorStateError(TriageError):
    """Raised when the polling coordinator is driven through an invalid transition."""
    pass
