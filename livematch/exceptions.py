"""Exception hierarchy for the live match officiating desk.

All exceptions inherit from :class:`LiveMatchError` so callers can catch
the full family with a single ``except LiveMatchError`` clause.
"""
from typing import Iterable, List, Optional


class LiveMatchError(Exception):
    """Base exception for all officiating errors."""


class ConfigurationError(LiveMatchError):
    """Raised when settings cannot be read from the environment."""


class ValidationError(LiveMatchError):
    """Raised when user input is rejected before any state mutation.

    Attributes:
        errors: Individual validation messages, in the order they were found.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class AppendError(ValidationError):
    """Raised when an event is missing fields required by its type."""


class ClockTransitionError(LiveMatchError):
    """Raised for a clock action that is not legal in the current state."""


class TransientPersistenceError(LiveMatchError):
    """Raised by the backend client when a request fails in transit.

    Attributes:
        operation: Short name of the failed backend call (``save_state`` ...).
        status_code: HTTP status when the backend answered, else ``None``.
    """

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")


class StateDesyncError(LiveMatchError):
    """A checkpoint references a period the current schedule does not have."""


class MatchNotFoundError(LiveMatchError):
    """Raised when no officiating session is open for a match id."""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"No active session for match {match_id}")
