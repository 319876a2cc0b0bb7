"""
Status changes on existing bookings.

These are the organization-side actions (approve a pending request, cancel,
close out a past booking). They go through ``BookingStatusMachine`` so a
cancelled booking can never come back and start holding time again.
Confirming and cancelling notify the guest in the background.
"""

import logging
from datetime import datetime, timezone

from booking_engine.dispatch import FireAndForgetDispatcher
from booking_engine.errors import NotFoundError
from booking_engine.messages import build_cancellation, build_confirmation
from booking_engine.scheduling.status import BookingStatusMachine, StatusTrigger
from booking_engine.schemas.booking_schema import Booking, BookingStatus
from booking_engine.store.base import Collaborators
from booking_engine.store.guard import StorageGuard

logger = logging.getLogger(__name__)


class BookingLifecycle:
    def __init__(
        self,
        collaborators: Collaborators,
        guard: StorageGuard,
        dispatcher: FireAndForgetDispatcher,
    ) -> None:
        self._c = collaborators
        self._guard = guard
        self._dispatcher = dispatcher

    async def confirm(self, organization_id: str, booking_id: str) -> Booking:
        booking = await self._apply(organization_id, booking_id, StatusTrigger.CONFIRM)
        await self._notify(booking)
        return booking

    async def cancel(self, organization_id: str, booking_id: str) -> Booking:
        booking = await self._apply(organization_id, booking_id, StatusTrigger.CANCEL)
        await self._notify(booking)
        return booking

    async def complete(self, organization_id: str, booking_id: str) -> Booking:
        return await self._apply(organization_id, booking_id, StatusTrigger.COMPLETE)

    async def mark_no_show(self, organization_id: str, booking_id: str) -> Booking:
        return await self._apply(organization_id, booking_id, StatusTrigger.MARK_NO_SHOW)

    async def _apply(
        self, organization_id: str, booking_id: str, trigger: StatusTrigger
    ) -> Booking:
        booking = await self._guard("get_booking", self._c.ledger.get_booking(booking_id))
        if booking is None or booking.organization_id != organization_id:
            raise NotFoundError(f"Booking {booking_id} not found.")

        machine = BookingStatusMachine(booking.status)
        new_status = machine.transition(trigger)

        changes: dict = {"status": new_status}
        if new_status == BookingStatus.CANCELLED:
            changes["cancelled_at"] = datetime.now(timezone.utc)
        # Compare-and-set: a concurrent change since the read above fails the write.
        updated = await self._guard(
            "update_booking",
            self._c.ledger.update_booking(
                booking.model_copy(update=changes), expected_status=booking.status
            ),
        )
        logger.info(
            "Booking %s: %s -> %s", booking_id, booking.status.value, new_status.value
        )
        return updated

    async def _notify(self, booking: Booking) -> None:
        """Email the guest about the new status. Failures are logged, never raised."""
        try:
            await self._dispatch_notice(booking)
        except Exception as exc:
            logger.error("Failed to notify guest of booking %s: %r", booking.id, exc)

    async def _dispatch_notice(self, booking: Booking) -> None:
        organization = await self._guard(
            "get_organization_config",
            self._c.organizations.get_organization_config(booking.organization_id),
        )
        if organization is None:
            logger.warning("No organization %s for booking %s", booking.organization_id, booking.id)
            return

        if booking.status == BookingStatus.CANCELLED:
            message = build_cancellation(booking, organization)
            if message is not None:
                self._dispatcher.dispatch(
                    f"booking cancellation {booking.id}",
                    lambda: self._c.sender.send_booking_cancellation(message),
                )
        else:
            message = build_confirmation(booking, organization)
            if message is not None:
                self._dispatcher.dispatch(
                    f"booking confirmation {booking.id}",
                    lambda: self._c.sender.send_booking_confirmation(message),
                )
