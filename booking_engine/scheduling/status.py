"""
Finite state machine for booking status.

Every status change goes through an explicit transition table, so a
booking can never leave CANCELLED or be confirmed after it has been
completed. Only PENDING and CONFIRMED hold time on the calendar; moving
to any other status frees the slot for future conflict checks.

Usage:
    sm = BookingStatusMachine(BookingStatus.PENDING)
    sm.transition(StatusTrigger.CONFIRM)
    assert sm.current_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from booking_engine.errors import InvalidTransitionError
from booking_engine.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class StatusTrigger(str, Enum):
    """Actions that change a booking's status."""
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"
    MARK_NO_SHOW = "mark_no_show"


@dataclass(frozen=True)
class StatusTransition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: StatusTrigger


TERMINAL_STATUSES = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
)


def initial_status(requires_confirmation: bool) -> BookingStatus:
    """Status a new booking starts in."""
    return BookingStatus.PENDING if requires_confirmation else BookingStatus.CONFIRMED


class BookingStatusMachine:
    """Validates and applies booking status transitions."""

    TRANSITIONS: list[StatusTransition] = [
        StatusTransition(BookingStatus.PENDING, BookingStatus.CONFIRMED, StatusTrigger.CONFIRM),
        StatusTransition(BookingStatus.PENDING, BookingStatus.CANCELLED, StatusTrigger.CANCEL),
        StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, StatusTrigger.CANCEL),
        StatusTransition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED, StatusTrigger.COMPLETE),
        StatusTransition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, StatusTrigger.MARK_NO_SHOW),
    ]

    def __init__(self, status: BookingStatus = BookingStatus.PENDING) -> None:
        self._current_status = status

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, trigger: StatusTrigger) -> BookingStatus:
        """
        Execute a status transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_status == self._current_status and t.trigger == trigger:
                old_status = self._current_status
                self._current_status = t.to_status
                logger.debug(
                    "Status transition: %s -> %s (trigger: %s)",
                    old_status.value, self._current_status.value, trigger.value,
                )
                return self._current_status

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"Cannot {trigger.value} a booking that is {self._current_status.value.lower()}. "
            f"Valid actions: {valid}"
        )

    def get_valid_triggers(self) -> list[StatusTrigger]:
        """Return all triggers valid from the current status."""
        return [t.trigger for t in self.TRANSITIONS if t.from_status == self._current_status]

    def is_terminal(self) -> bool:
        return self._current_status in TERMINAL_STATUSES
