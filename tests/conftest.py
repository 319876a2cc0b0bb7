"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from booking_engine.engine import BookingEngine
from booking_engine.schemas.booking_schema import Booking, BookingStatus, GuestSnapshot
from booking_engine.schemas.customer_schema import Client, ClientStatus
from booking_engine.schemas.organization_schema import (
    AvailabilityRule,
    BookingType,
    ChannelSettings,
    OrganizationConfig,
)
from booking_engine.store import in_memory_collaborators

ORG_ID = "org_acme"
MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
# Saturday morning before the Monday under test.
FIXED_NOW = datetime(2024, 6, 1, 8, 0)


class FakeClock:
    """Settable clock so tests control what "now" is."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_organization(
    org_id: str = ORG_ID,
    buffer_minutes: int = 15,
    public_confirm: bool = False,
    portal_confirm: bool = False,
) -> OrganizationConfig:
    return OrganizationConfig(
        id=org_id,
        name="Acme Studio",
        locale="en",
        public=ChannelSettings(
            title="Intro Call",
            durations=[15, 30],
            buffer_minutes=buffer_minutes,
            requires_confirmation=public_confirm,
        ),
        portal=ChannelSettings(
            durations=[30, 60],
            buffer_minutes=buffer_minutes,
            requires_confirmation=portal_confirm,
        ),
    )


def make_rule(
    day_of_week: int = 1,
    start: str = "09:00",
    end: str = "17:00",
    org_id: str = ORG_ID,
    is_active: bool = True,
) -> AvailabilityRule:
    return AvailabilityRule(
        organization_id=org_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )


def make_booking(
    start: str,
    duration_minutes: int = 30,
    day: date = MONDAY,
    status: BookingStatus = BookingStatus.CONFIRMED,
    org_id: str = ORG_ID,
) -> Booking:
    hours, minutes = (int(p) for p in start.split(":"))
    starts_at = datetime(day.year, day.month, day.day, hours, minutes)
    return Booking(
        organization_id=org_id,
        guest=GuestSnapshot(name="Existing Guest", email="existing@example.com"),
        starts_at=starts_at,
        ends_at=starts_at + timedelta(minutes=duration_minutes),
        status=status,
    )


def public_payload(**overrides) -> dict:
    """A valid public booking request for Monday 10:00, 30 minutes."""
    payload = {
        "organization_id": ORG_ID,
        "duration_minutes": 30,
        "date": MONDAY.isoformat(),
        "time": "10:00",
        "name": "Ada Lovelace",
        "email": "Ada@Example.com",
        "phone": "+44 20 7946 0000",
        "notes": "  First session  ",
    }
    payload.update(overrides)
    return payload


def portal_payload(client_id: str = "cl_portal", **overrides) -> dict:
    payload = {
        "organization_id": ORG_ID,
        "client_id": client_id,
        "booking_type_id": "bt_review",
        "date": MONDAY.isoformat(),
        "time": "14:00",
    }
    payload.update(overrides)
    return payload


def slot_map(slots) -> dict[str, bool]:
    return {s.time: s.available for s in slots}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def collaborators():
    c = in_memory_collaborators()
    c.organizations.add_organization(make_organization())
    c.organizations.add_booking_type(
        BookingType(
            id="bt_consult",
            organization_id=ORG_ID,
            name="Consultation",
            duration_minutes=30,
            is_public=True,
        )
    )
    c.organizations.add_booking_type(
        BookingType(
            id="bt_review",
            organization_id=ORG_ID,
            name="Quarterly Review",
            duration_minutes=60,
            requires_confirmation=True,
            is_public=False,
        )
    )
    c.availability.set_rule(make_rule(day_of_week=1))
    c.clients.add_client(
        Client(
            id="cl_portal",
            organization_id=ORG_ID,
            name="Grace Hopper",
            email="grace@example.com",
            status=ClientStatus.ACTIVE,
        )
    )
    return c


@pytest.fixture
def engine(collaborators, clock):
    return BookingEngine(collaborators, clock=clock, timeout_seconds=2.0)


def booked_intervals(ledger, org_id: str = ORG_ID) -> list[tuple[datetime, datetime]]:
    """Start/end of every occupying booking of an organization, sorted."""
    return sorted(
        (b.starts_at, b.ends_at)
        for b in ledger.all_bookings()
        if b.organization_id == org_id and b.occupies_time
    )


def assert_gaps_at_least(intervals, buffer_minutes: int) -> None:
    gap = timedelta(minutes=buffer_minutes)
    for (_, prev_end), (next_start, _) in zip(intervals, intervals[1:]):
        assert next_start - prev_end >= gap, f"{prev_end} -> {next_start} closer than {gap}"


def find_booking(ledger, booking_id: str) -> Optional[Booking]:
    return next((b for b in ledger.all_bookings() if b.id == booking_id), None)
