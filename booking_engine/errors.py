"""Exception hierarchy for the booking engine.

Engine layers raise these; the booking writer is the only place that turns
them into a ``BookingResult``. Anything that is not a ``BookingEngineError``
is treated as a system fault and never shown to the end user.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SLOT_UNAVAILABLE = "slot_unavailable"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class BookingEngineError(Exception):
    """Base class for errors that belong to the typed result contract."""

    code: ErrorCode = ErrorCode.INTERNAL
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingEngineError):
    """A required field is missing or malformed."""

    code = ErrorCode.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(BookingEngineError):
    """A referenced record does not exist or is no longer usable."""

    code = ErrorCode.NOT_FOUND


class OrganizationNotFoundError(NotFoundError):
    def __init__(self, organization_id: str) -> None:
        super().__init__(f"Organization {organization_id} not found.")
        self.organization_id = organization_id


class SlotUnavailableError(BookingEngineError):
    """The requested slot is taken or outside availability."""

    code = ErrorCode.SLOT_UNAVAILABLE
    retryable = True

    def __init__(
        self,
        message: str = "This time slot is no longer available. Please choose another.",
    ) -> None:
        super().__init__(message)


class StorageTimeoutError(BookingEngineError):
    """A collaborator call exceeded the configured storage timeout."""

    code = ErrorCode.TIMEOUT
    retryable = True

    def __init__(
        self, operation: str, timeout_seconds: float
    ) -> None:
        super().__init__("The booking service is busy right now. Please try again.")
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class InvalidTransitionError(BookingEngineError):
    """Raised when a status transition is not valid from the current status."""

    code = ErrorCode.VALIDATION
