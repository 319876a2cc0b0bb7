"""
Availability lookups backed by the collaborators.

Both the slot picker and the booking writer go through ``AvailabilityService``
so they compute a day's slots the same way. Every call re-reads the rule
and the bookings; nothing is cached between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from booking_engine.errors import BookingValidationError, NotFoundError, OrganizationNotFoundError
from booking_engine.scheduling.slots import compute_day_slots
from booking_engine.schemas.booking_schema import OCCUPYING_STATUSES, TimeSlot
from booking_engine.schemas.organization_schema import (
    BookingChannel,
    BookingType,
    OrganizationConfig,
)
from booking_engine.store.base import Collaborators
from booking_engine.store.guard import StorageGuard
from booking_engine.utils import day_bounds, day_of_week

logger = logging.getLogger(__name__)


def _pick(own: Optional[int], fallback: int) -> int:
    return fallback if own is None else own


@dataclass(frozen=True)
class ServiceSelection:
    """What is being booked: a booking type, or a bare duration on a channel."""

    name: str
    duration_minutes: int
    buffer_before: int
    buffer_after: int
    requires_confirmation: bool
    booking_type: Optional[BookingType] = None


class AvailabilityService:
    def __init__(
        self,
        collaborators: Collaborators,
        guard: StorageGuard,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._c = collaborators
        self._guard = guard
        self._clock = clock

    async def load_organization(self, organization_id: str) -> OrganizationConfig:
        organization = await self._guard(
            "get_organization_config",
            self._c.organizations.get_organization_config(organization_id),
        )
        if organization is None:
            raise OrganizationNotFoundError(organization_id)
        return organization

    async def select_service(
        self,
        organization: OrganizationConfig,
        channel: BookingChannel,
        booking_type_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> ServiceSelection:
        """Resolve the requested service and the buffers around it.

        A booking type's own buffers win; unset ones fall back to the
        channel's buffer.
        """
        channel_settings = organization.channel(channel)

        if booking_type_id:
            booking_type = await self._guard(
                "get_booking_type", self._c.organizations.get_booking_type(booking_type_id)
            )
            if (
                booking_type is None
                or not booking_type.is_active
                or booking_type.organization_id != organization.id
            ):
                raise NotFoundError("This booking type is no longer available.")
            return ServiceSelection(
                name=booking_type.name,
                duration_minutes=booking_type.duration_minutes,
                buffer_before=_pick(booking_type.buffer_before, channel_settings.buffer_minutes),
                buffer_after=_pick(booking_type.buffer_after, channel_settings.buffer_minutes),
                requires_confirmation=booking_type.requires_confirmation,
                booking_type=booking_type,
            )

        if not duration_minutes or duration_minutes <= 0:
            raise BookingValidationError(
                "Please choose a valid duration.", field="duration_minutes"
            )
        if channel_settings.durations and duration_minutes not in channel_settings.durations:
            raise BookingValidationError(
                "This duration is not offered.", field="duration_minutes"
            )
        return ServiceSelection(
            name=channel_settings.title or f"{duration_minutes} minute booking",
            duration_minutes=duration_minutes,
            buffer_before=channel_settings.buffer_minutes,
            buffer_after=channel_settings.buffer_minutes,
            requires_confirmation=channel_settings.requires_confirmation,
        )

    async def slots_for_day(
        self,
        organization_id: str,
        day: date,
        duration_minutes: int,
        buffer_minutes: int,
        buffer_after: Optional[int] = None,
    ) -> list[TimeSlot]:
        """Fresh slot list for one day; empty when the day has no active rule.

        Bookings are read for the day widened by the larger buffer, so one
        that ends just before midnight still blocks the first slots.
        """
        rule = await self._guard(
            "get_availability_rule",
            self._c.availability.get_availability_rule(organization_id, day_of_week(day)),
        )
        if rule is None:
            logger.debug("No active availability for %s on %s", organization_id, day.isoformat())
            return []

        start, end = day_bounds(day)
        pad = timedelta(minutes=max(buffer_minutes, buffer_after or 0))
        bookings = await self._guard(
            "list_bookings",
            self._c.ledger.list_bookings(
                organization_id, start - pad, end + pad, OCCUPYING_STATUSES
            ),
        )
        return compute_day_slots(
            rule, bookings, day, duration_minutes, buffer_minutes,
            now=self._clock(), buffer_after=buffer_after,
        )

    async def active_days(self, organization_id: str) -> list[int]:
        return await self._guard(
            "list_active_days", self._c.availability.list_active_days(organization_id)
        )

    def now(self) -> datetime:
        return self._clock()
