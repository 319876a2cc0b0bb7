"""
In-memory booking ledger.

In production, this would be the bookings table with an exclusion
constraint over ``(organization_id, buffered time range)`` for rows whose
status is PENDING or CONFIRMED. The in-memory ledger enforces the same
rule under its own lock so a stale availability read can never produce
two overlapping bookings.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Collection, Optional

from booking_engine.errors import InvalidTransitionError, NotFoundError, SlotUnavailableError
from booking_engine.schemas.booking_schema import (
    OCCUPYING_STATUSES,
    Booking,
    BookingStatus,
    Contact,
)

logger = logging.getLogger(__name__)


class InMemoryBookingLedger:
    """Bookings and contacts stored in dicts, one write lock for the ledger."""

    def __init__(self, latency_seconds: float = 0.0) -> None:
        self._bookings: dict[str, Booking] = {}
        self._contacts: dict[str, Contact] = {}
        self._write_lock = asyncio.Lock()
        self._latency = latency_seconds
        self.write_count = 0

    async def _io(self) -> None:
        await asyncio.sleep(self._latency)

    async def list_bookings(
        self,
        organization_id: str,
        start: datetime,
        end: datetime,
        statuses: Collection[BookingStatus],
    ) -> list[Booking]:
        await self._io()
        return sorted(
            (
                b for b in self._bookings.values()
                if b.organization_id == organization_id
                and b.status in statuses
                and b.starts_at <= end
                and b.ends_at >= start
            ),
            key=lambda b: b.starts_at,
        )

    async def create_booking(
        self,
        booking: Booking,
        contact: Optional[Contact] = None,
        buffer_minutes: int = 0,
        buffer_after: Optional[int] = None,
    ) -> str:
        await self._io()
        async with self._write_lock:
            if booking.occupies_time:
                clash = self._find_overlap(booking, buffer_minutes, buffer_after)
                if clash is not None:
                    logger.warning(
                        "Rejected booking %s: overlaps %s", booking.id, clash.id
                    )
                    raise SlotUnavailableError()

            if contact is not None:
                contact = self._upsert_contact(contact)
                booking = booking.model_copy(update={"contact_id": contact.id})

            self._bookings[booking.id] = booking
            self.write_count += 1

        logger.info(
            "Booking stored: %s for %s at %s (%s)",
            booking.id, booking.organization_id,
            booking.starts_at.isoformat(), booking.status.value,
        )
        return booking.id

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        await self._io()
        return self._bookings.get(booking_id)

    async def update_booking(
        self, booking: Booking, expected_status: Optional[BookingStatus] = None
    ) -> Booking:
        await self._io()
        async with self._write_lock:
            stored = self._bookings.get(booking.id)
            if stored is None:
                raise NotFoundError(f"Booking {booking.id} not found.")
            if expected_status is not None and stored.status != expected_status:
                logger.warning(
                    "Rejected update of %s: status is %s, expected %s",
                    booking.id, stored.status.value, expected_status.value,
                )
                raise InvalidTransitionError(
                    f"Booking {booking.id} is already {stored.status.value.lower()}."
                )
            if booking.occupies_time:
                clash = self._find_overlap(booking, 0, exclude_id=booking.id)
                if clash is not None:
                    logger.warning(
                        "Rejected update of %s: overlaps %s", booking.id, clash.id
                    )
                    raise SlotUnavailableError()
            self._bookings[booking.id] = booking
            self.write_count += 1
        return booking

    def _find_overlap(
        self,
        booking: Booking,
        buffer_minutes: int,
        buffer_after: Optional[int] = None,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        after = buffer_minutes if buffer_after is None else buffer_after
        start = booking.starts_at - timedelta(minutes=buffer_minutes)
        end = booking.ends_at + timedelta(minutes=after)
        for existing in self._bookings.values():
            if (
                existing.id != exclude_id
                and existing.organization_id == booking.organization_id
                and existing.status in OCCUPYING_STATUSES
                and start < existing.ends_at
                and end > existing.starts_at
            ):
                return existing
        return None

    def _upsert_contact(self, contact: Contact) -> Contact:
        for existing in self._contacts.values():
            if existing.client_id == contact.client_id and existing.email == contact.email:
                updated = existing.model_copy(
                    update={"phone": contact.phone or existing.phone}
                )
                self._contacts[existing.id] = updated
                return updated
        self._contacts[contact.id] = contact
        return contact

    def all_bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    def contacts_for_client(self, client_id: str) -> list[Contact]:
        return [c for c in self._contacts.values() if c.client_id == client_id]

    def reset(self) -> None:
        """Clear all bookings and contacts. Used by test fixtures for isolation."""
        self._bookings.clear()
        self._contacts.clear()
        self.write_count = 0
