"""Error taxonomy shared by the rules engine and the API layer."""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from eventease.services.registration import Eligibility


class EventEaseError(Exception):
    """Base exception for all EventEase errors."""
    pass


class ValidationError(EventEaseError):
    """Raised when input is malformed; carries the offending field."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(EventEaseError):
    """Raised when a referenced event or user does not exist."""

    def __init__(self, resource: str, identifier: Optional[object] = None):
        message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier
        self.message = message


class AuthorizationError(EventEaseError):
    """Raised when a non-organizer attempts an organizer-only action."""
    pass


class EligibilityDenied(EventEaseError):
    """Raised when the eligibility guard refuses a join or leave."""

    def __init__(self, eligibility: "Eligibility"):
        super().__init__(eligibility.message)
        self.eligibility = eligibility

    @property
    def reason(self):
        return self.eligibility.reason


class ConflictError(EventEaseError):
    """Raised when a concurrent write invalidated an optimistic check."""
    pass
