"""
Booking engine entry point.

``BookingEngine`` wires the collaborators into the availability service,
the booking writer and the status lifecycle, and exposes the operations the
surrounding application calls in-process:

    engine = BookingEngine(collaborators)
    slots = await engine.get_available_slots("org_1", 30, 15, "2024-06-03")
    result = await engine.create_public_booking({...})
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional, Union

from booking_engine.availability import AvailabilityService
from booking_engine.dispatch import FireAndForgetDispatcher
from booking_engine.errors import BookingValidationError
from booking_engine.lifecycle import BookingLifecycle
from booking_engine.scheduling.locks import DayLockRegistry
from booking_engine.schemas.booking_schema import (
    Booking,
    BookingResult,
    PortalBookingRequest,
    PublicBookingRequest,
    TimeSlot,
)
from booking_engine.schemas.organization_schema import BookingChannel, BookingConfig
from booking_engine.store.base import Collaborators
from booking_engine.store.guard import StorageGuard
from booking_engine.writer import BookingWriter

logger = logging.getLogger(__name__)


def _as_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise BookingValidationError("Please choose a valid date.", field="date") from None


class BookingEngine:
    """Slot queries, booking creation and status changes for all organizations."""

    def __init__(
        self,
        collaborators: Collaborators,
        clock: Callable[[], datetime] = datetime.now,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.collaborators = collaborators
        self.guard = StorageGuard(timeout_seconds)
        self.locks = DayLockRegistry()
        self.dispatcher = FireAndForgetDispatcher()
        self.availability = AvailabilityService(collaborators, self.guard, clock)
        self.writer = BookingWriter(
            collaborators, self.availability, self.guard, self.locks, self.dispatcher
        )
        self.lifecycle = BookingLifecycle(collaborators, self.guard, self.dispatcher)

    # ------------------------------------------------------------------ #
    # Read side
    # ------------------------------------------------------------------ #

    async def get_available_slots(
        self,
        organization_id: str,
        duration_minutes: int,
        buffer_minutes: int,
        day: Union[str, date],
    ) -> list[TimeSlot]:
        """Slots for one day and duration.

        Returns an empty list when the day has no active availability rule.

        Raises:
            OrganizationNotFoundError: If the organization does not exist.
            BookingValidationError: On a malformed date, duration or buffer.
        """
        target = _as_date(day)
        if duration_minutes <= 0:
            raise BookingValidationError(
                "Please choose a valid duration.", field="duration_minutes"
            )
        if buffer_minutes < 0:
            raise BookingValidationError("Buffer must not be negative.", field="buffer_minutes")

        organization = await self.availability.load_organization(organization_id)
        return await self.availability.slots_for_day(
            organization.id, target, duration_minutes, buffer_minutes
        )

    async def get_channel_slots(
        self,
        organization_id: str,
        channel: BookingChannel,
        day: Union[str, date],
        booking_type_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> list[TimeSlot]:
        """Slots for a service as the writer will see them, using its own or the channel's buffers."""
        target = _as_date(day)
        organization = await self.availability.load_organization(organization_id)
        service = await self.availability.select_service(
            organization, channel, booking_type_id, duration_minutes
        )
        return await self.availability.slots_for_day(
            organization.id,
            target,
            service.duration_minutes,
            service.buffer_before,
            buffer_after=service.buffer_after,
        )

    async def get_available_days(self, organization_id: str) -> list[int]:
        """Days of the week (Sunday = 0) that have an active availability rule."""
        return await self.availability.active_days(organization_id)

    async def get_booking_config(
        self, organization_id: str, channel: BookingChannel = BookingChannel.PUBLIC
    ) -> Optional[BookingConfig]:
        """Organization name, channel settings and bookable types; None for unknown organizations."""
        organization = await self.guard(
            "get_organization_config",
            self.collaborators.organizations.get_organization_config(organization_id),
        )
        if organization is None:
            return None
        booking_types = await self.guard(
            "list_booking_types",
            self.collaborators.organizations.list_booking_types(
                organization_id, is_public=channel == BookingChannel.PUBLIC
            ),
        )
        channel_settings = organization.channel(channel)
        return BookingConfig(
            organization_name=organization.name,
            title=channel_settings.title,
            durations=list(channel_settings.durations),
            booking_types=booking_types,
        )

    # ------------------------------------------------------------------ #
    # Booking creation
    # ------------------------------------------------------------------ #

    async def create_public_booking(
        self, payload: Union[Mapping[str, Any], PublicBookingRequest]
    ) -> BookingResult:
        return await self.writer.create_public_booking(payload)

    async def create_portal_booking(
        self, payload: Union[Mapping[str, Any], PortalBookingRequest]
    ) -> BookingResult:
        return await self.writer.create_portal_booking(payload)

    # ------------------------------------------------------------------ #
    # Status changes
    # ------------------------------------------------------------------ #

    async def confirm_booking(self, organization_id: str, booking_id: str) -> Booking:
        return await self.lifecycle.confirm(organization_id, booking_id)

    async def cancel_booking(self, organization_id: str, booking_id: str) -> Booking:
        return await self.lifecycle.cancel(organization_id, booking_id)

    async def complete_booking(self, organization_id: str, booking_id: str) -> Booking:
        return await self.lifecycle.complete(organization_id, booking_id)

    async def mark_no_show(self, organization_id: str, booking_id: str) -> Booking:
        return await self.lifecycle.mark_no_show(organization_id, booking_id)

    async def shutdown(self) -> None:
        """Wait for background email sends to finish."""
        if self.dispatcher.pending:
            logger.info("Waiting for %d background sends", self.dispatcher.pending)
        await self.dispatcher.drain()
