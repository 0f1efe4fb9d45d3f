"""Error taxonomy for the calendar companion core."""

from typing import Optional


class CompanionError(Exception):
    """Base class for all calendar companion errors."""


class UnauthenticatedError(CompanionError):
    """No bearer credential is available for a calendar action."""

    def __init__(self, message: str = "No calendar credential available"):
        super().__init__(message)


class RemoteError(CompanionError):
    """The calendar provider rejected a request."""

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        """
        Initialize remote error.

        Args:
            message: Provider error text, if the provider returned one
            status: HTTP status code, if known
        """
        super().__init__(message or "Remote request failed")
        self.message = message
        self.status = status


class NotFoundError(CompanionError):
    """A persisted object does not exist."""


class MalformedStateError(CompanionError):
    """Persisted content exists but cannot be parsed into a valid history."""


class ModelError(CompanionError):
    """The language model failed or returned nothing usable."""
