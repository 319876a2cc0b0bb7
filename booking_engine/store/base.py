"""
Collaborator interfaces the booking engine depends on.

The engine never talks to a database or mail provider directly. Each
concern sits behind one of these protocols; the in-memory implementations
in this package back the tests, and production deployments plug in their
own data-access layer.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Collection, Optional, Protocol

from booking_engine.schemas.activity_schema import (
    ActivityEvent,
    BookingCancellation,
    BookingConfirmation,
    Notification,
)
from booking_engine.schemas.booking_schema import Booking, BookingStatus, Contact
from booking_engine.schemas.customer_schema import Client
from booking_engine.schemas.organization_schema import (
    AvailabilityRule,
    BookingType,
    OrganizationConfig,
)


class AvailabilityRuleStore(Protocol):
    """Read-only weekly availability rules."""

    async def get_availability_rule(
        self, organization_id: str, day_of_week: int
    ) -> Optional[AvailabilityRule]: ...

    async def list_active_days(self, organization_id: str) -> list[int]: ...


class BookingLedger(Protocol):
    """Bookings and the contacts written alongside them."""

    async def list_bookings(
        self,
        organization_id: str,
        start: datetime,
        end: datetime,
        statuses: Collection[BookingStatus],
    ) -> list[Booking]: ...

    async def create_booking(
        self,
        booking: Booking,
        contact: Optional[Contact] = None,
        buffer_minutes: int = 0,
        buffer_after: Optional[int] = None,
    ) -> str:
        """Persist ``booking`` (and ``contact``) as one unit of work.

        Must raise ``SlotUnavailableError`` instead of writing when an
        occupying booking of the same organization overlaps the new one,
        widened by ``buffer_minutes`` before and ``buffer_after`` (default:
        ``buffer_minutes``) after.
        """
        ...

    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    async def update_booking(
        self, booking: Booking, expected_status: Optional[BookingStatus] = None
    ) -> Booking:
        """Replace the stored booking.

        When ``expected_status`` is given the write only happens if the stored
        status still equals it; otherwise ``InvalidTransitionError`` is raised.
        """
        ...


class OrganizationDirectory(Protocol):
    """Organization settings and the services they offer."""

    async def get_organization_config(
        self, organization_id: str
    ) -> Optional[OrganizationConfig]: ...

    async def get_booking_type(self, booking_type_id: str) -> Optional[BookingType]: ...

    async def list_booking_types(
        self, organization_id: str, is_public: bool
    ) -> list[BookingType]: ...


class ClientDirectory(Protocol):
    """Client records on the CRM side."""

    async def resolve_or_create_client(
        self,
        organization_id: str,
        email: str,
        name: str,
        phone: Optional[str] = None,
    ) -> str: ...

    async def get_client(self, client_id: str) -> Optional[Client]: ...


class ActivityFeed(Protocol):
    """In-app notifications and client timeline events."""

    async def emit_notification(self, notification: Notification) -> None: ...

    async def emit_activity_event(self, event: ActivityEvent) -> None: ...


class ConfirmationSender(Protocol):
    """Delivers booking emails. Rendering and retries are its own concern."""

    async def send_booking_confirmation(self, message: BookingConfirmation) -> None: ...

    async def send_booking_cancellation(self, message: BookingCancellation) -> None: ...


@dataclass
class Collaborators:
    """Everything the engine reads from or writes to outside itself."""

    availability: AvailabilityRuleStore
    ledger: BookingLedger
    organizations: OrganizationDirectory
    clients: ClientDirectory
    activity: ActivityFeed
    sender: ConfirmationSender
