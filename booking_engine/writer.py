"""
Booking writer: validates a booking request and commits it.

One writer serves both entry points. What differs between the public
booking page and the client portal is how the guest is identified, so
that part is an ``IdentityStrategy``; slot computation, the re-check and
the commit are shared.

Commit protocol, in order:
  1. validate the request (no side effects on failure)
  2. load the organization and the requested service
  3. under the organization/day lock, recompute the day's slots and
     require the requested time to still be available
  4. compute start and end
  5. resolve the client
  6. pick the initial status
  7. write the booking (plus contact) as one unit; the ledger rejects
     overlaps even if step 3 read stale data
  8. record notification and activity event (best effort)
  9. dispatch the confirmation email (fire and forget)
 10. return a ``BookingResult``

The lock only serializes requests inside one process. Across processes
the ledger's overlap rejection in step 7 is what keeps two racing
requests from both succeeding.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from booking_engine.availability import AvailabilityService, ServiceSelection
from booking_engine.config import settings
from booking_engine.dispatch import FireAndForgetDispatcher
from booking_engine.errors import (
    GENERIC_ERROR_MESSAGE,
    BookingEngineError,
    BookingValidationError,
    ErrorCode,
    NotFoundError,
    SlotUnavailableError,
)
from booking_engine.logging_context import get_request_logger, new_request_id
from booking_engine.messages import build_activity_event, build_confirmation, build_notification
from booking_engine.scheduling.locks import DayLockRegistry
from booking_engine.scheduling.slots import slot_bounds
from booking_engine.scheduling.status import initial_status
from booking_engine.schemas.booking_schema import (
    REQUIRED_FIELDS_MESSAGE,
    Booking,
    BookingResult,
    BookingStatus,
    Contact,
    GuestSnapshot,
    LocationType,
    PortalBookingRequest,
    PublicBookingRequest,
)
from booking_engine.schemas.organization_schema import BookingChannel, OrganizationConfig
from booking_engine.store.base import Collaborators
from booking_engine.store.guard import StorageGuard
from booking_engine.utils import split_name

logger = get_request_logger(__name__)

_FIELD_MESSAGES = {
    "date": "Please choose a valid date.",
    "time": "Please choose a valid time.",
    "duration_minutes": "Please choose a valid duration.",
}

BookingRequest = Union[PublicBookingRequest, PortalBookingRequest]


@dataclass(frozen=True)
class ResolvedIdentity:
    """Who the booking is for."""

    client_id: str
    guest: GuestSnapshot
    contact: Optional[Contact] = None
    contact_id: Optional[str] = None


class IdentityStrategy(Protocol):
    channel: BookingChannel
    request_model: type[BaseModel]

    async def resolve(
        self, collaborators: Collaborators, guard: StorageGuard, request: Any
    ) -> ResolvedIdentity: ...


class PublicIdentity:
    """Guests from the public page: find the client by email or create a lead."""

    channel = BookingChannel.PUBLIC
    request_model = PublicBookingRequest

    async def resolve(
        self, collaborators: Collaborators, guard: StorageGuard, request: PublicBookingRequest
    ) -> ResolvedIdentity:
        client_id = await guard(
            "resolve_or_create_client",
            collaborators.clients.resolve_or_create_client(
                request.organization_id, request.email, request.name, request.phone
            ),
        )
        first_name, last_name = split_name(request.name)
        return ResolvedIdentity(
            client_id=client_id,
            guest=GuestSnapshot(name=request.name, email=request.email, phone=request.phone),
            contact=Contact(
                client_id=client_id,
                first_name=first_name,
                last_name=last_name,
                email=request.email,
                phone=request.phone,
            ),
        )


class PortalIdentity:
    """Authenticated portal clients: the client id is already resolved."""

    channel = BookingChannel.PORTAL
    request_model = PortalBookingRequest

    async def resolve(
        self, collaborators: Collaborators, guard: StorageGuard, request: PortalBookingRequest
    ) -> ResolvedIdentity:
        client = await guard("get_client", collaborators.clients.get_client(request.client_id))
        if client is None or client.organization_id != request.organization_id:
            raise NotFoundError("Client not found.")
        return ResolvedIdentity(
            client_id=client.id,
            guest=GuestSnapshot(name=client.name, email=client.email or "", phone=client.phone),
            contact_id=request.contact_id,
        )


def parse_request(model: type[BaseModel], payload: Union[Mapping[str, Any], BaseModel]):
    """Validate ``payload`` into ``model``, reducing errors to one field-level message."""
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        if first["type"] == "missing" or first.get("input") is None:
            message = REQUIRED_FIELDS_MESSAGE
        elif first["type"] == "value_error":
            message = str(first["ctx"]["error"])
        else:
            message = _FIELD_MESSAGES.get(field or "", REQUIRED_FIELDS_MESSAGE)
        raise BookingValidationError(message, field=field) from None


class BookingWriter:
    def __init__(
        self,
        collaborators: Collaborators,
        availability: AvailabilityService,
        guard: StorageGuard,
        locks: DayLockRegistry,
        dispatcher: FireAndForgetDispatcher,
    ) -> None:
        self._c = collaborators
        self._availability = availability
        self._guard = guard
        self._locks = locks
        self._dispatcher = dispatcher

    async def create_public_booking(
        self, payload: Union[Mapping[str, Any], PublicBookingRequest]
    ) -> BookingResult:
        if isinstance(payload, Mapping) and payload.get(settings.public.honeypot_field):
            # Look successful so automated submitters learn nothing.
            logger.info("Honeypot field set, discarding public booking")
            return BookingResult(success=True, booking_id="", status=BookingStatus.CONFIRMED)
        return await self.create(payload, PublicIdentity())

    async def create_portal_booking(
        self, payload: Union[Mapping[str, Any], PortalBookingRequest]
    ) -> BookingResult:
        return await self.create(payload, PortalIdentity())

    async def create(
        self, payload: Union[Mapping[str, Any], BaseModel], identity: IdentityStrategy
    ) -> BookingResult:
        """Run the commit protocol and convert any failure into a result."""
        request_id = new_request_id()
        channel = identity.channel.value
        try:
            request = parse_request(identity.request_model, payload)
            return await self._commit(request, identity)
        except BookingEngineError as exc:
            logger.info(
                "%s booking %s rejected (%s): %s", channel, request_id, exc.code.value, exc.message
            )
            return BookingResult.from_error(exc)
        except Exception:
            logger.exception("%s booking %s creation failed", channel, request_id)
            return BookingResult(
                success=False, error=GENERIC_ERROR_MESSAGE, error_code=ErrorCode.INTERNAL
            )

    async def _commit(self, request: BookingRequest, identity: IdentityStrategy) -> BookingResult:
        if request.date < self._availability.now().date():
            raise BookingValidationError("Please choose a date in the future.", field="date")

        organization = await self._availability.load_organization(request.organization_id)
        service = await self._availability.select_service(
            organization, identity.channel, request.booking_type_id, request.duration_minutes
        )

        async with self._locks.hold(organization.id, request.date):
            await self._require_available(request, service)

            starts_at, ends_at = slot_bounds(request.date, request.time, service.duration_minutes)
            resolved = await identity.resolve(self._c, self._guard, request)
            status = initial_status(service.requires_confirmation)

            booking = Booking(
                organization_id=organization.id,
                client_id=resolved.client_id,
                contact_id=resolved.contact_id,
                booking_type_id=service.booking_type.id if service.booking_type else None,
                guest=resolved.guest,
                starts_at=starts_at,
                ends_at=ends_at,
                status=status,
                notes=request.notes,
                location_type=LocationType.ONLINE,
                portal_visible=True,
            )
            booking_id = await self._guard(
                "create_booking",
                self._c.ledger.create_booking(
                    booking,
                    resolved.contact,
                    buffer_minutes=service.buffer_before,
                    buffer_after=service.buffer_after,
                ),
            )
            booking = booking.model_copy(update={"id": booking_id})

        logger.info(
            "Booking %s created via %s for %s on %s at %s (%s)",
            booking.id, identity.channel.value, organization.id,
            request.date.isoformat(), request.time, status.value,
        )

        await self._record_activity(booking, service, identity.channel)
        self._send_confirmation(booking, organization)
        return BookingResult.ok(booking.id, status)

    async def _require_available(self, request: BookingRequest, service: ServiceSelection) -> None:
        slots = await self._availability.slots_for_day(
            request.organization_id,
            request.date,
            service.duration_minutes,
            service.buffer_before,
            buffer_after=service.buffer_after,
        )
        selected = next((s for s in slots if s.time == request.time), None)
        if selected is None or not selected.available:
            raise SlotUnavailableError()

    async def _record_activity(
        self, booking: Booking, service: ServiceSelection, channel: BookingChannel
    ) -> None:
        writes = [
            ("notification", self._c.activity.emit_notification(
                build_notification(booking, service.name, channel)
            )),
        ]
        event = build_activity_event(booking, service.name, channel)
        if event is not None:
            writes.append(("activity event", self._c.activity.emit_activity_event(event)))

        results = await asyncio.gather(
            *(self._guard(f"emit {label}", write) for label, write in writes),
            return_exceptions=True,
        )
        for (label, _), result in zip(writes, results):
            if isinstance(result, Exception):
                logger.error(
                    "Failed to record %s for booking %s: %r", label, booking.id, result
                )

    def _send_confirmation(self, booking: Booking, organization: OrganizationConfig) -> None:
        message = build_confirmation(booking, organization)
        if message is None:
            logger.debug("Booking %s has no guest email, skipping confirmation", booking.id)
            return
        self._dispatcher.dispatch(
            f"booking confirmation {booking.id}",
            lambda: self._c.sender.send_booking_confirmation(message),
        )
