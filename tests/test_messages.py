"""Tests for notification, activity and email payload builders."""

from datetime import datetime

from booking_engine.messages import (
    build_activity_event,
    build_cancellation,
    build_confirmation,
    build_notification,
    format_booking_date,
)
from booking_engine.schemas.booking_schema import Booking, GuestSnapshot
from booking_engine.schemas.organization_schema import BookingChannel
from tests.conftest import ORG_ID, make_booking, make_organization


class TestFormatBookingDate:
    def test_english(self):
        assert format_booking_date(datetime(2024, 6, 3, 10), "en") == "Monday, June 3, 2024"

    def test_german(self):
        assert format_booking_date(datetime(2024, 6, 3, 10), "de-DE") == "Montag, 3. Juni 2024"

    def test_dutch(self):
        assert format_booking_date(datetime(2024, 6, 3, 10), "nl") == "maandag 3 juni 2024"

    def test_unknown_locale_falls_back_to_english(self):
        assert format_booking_date(datetime(2024, 6, 3, 10), "xx").startswith("Monday")


class TestBuilders:
    def test_portal_notification_title(self):
        booking = make_booking("10:00")
        notification = build_notification(booking, "Review", BookingChannel.PORTAL)
        assert notification.title == "New booking: Existing Guest (via portal)"
        assert notification.message == "Review - 2024-06-03 at 10:00"

    def test_no_activity_event_without_client(self):
        assert build_activity_event(make_booking("10:00"), "Review", BookingChannel.PUBLIC) is None

    def test_no_email_without_guest_email(self):
        booking = Booking(
            organization_id=ORG_ID,
            guest=GuestSnapshot(name="Walk-in"),
            starts_at=datetime(2024, 6, 3, 10),
            ends_at=datetime(2024, 6, 3, 10, 30),
        )
        organization = make_organization()
        assert build_confirmation(booking, organization) is None
        assert build_cancellation(booking, organization) is None
