"""Builders for the records and messages a booking produces."""

from datetime import datetime
from typing import Optional

from booking_engine.schemas.activity_schema import (
    ActivityEvent,
    BookingCancellation,
    BookingConfirmation,
    Notification,
)
from booking_engine.schemas.booking_schema import Booking
from booking_engine.schemas.organization_schema import BookingChannel, OrganizationConfig

_WEEKDAYS = {
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    "nl": ["maandag", "dinsdag", "woensdag", "donderdag", "vrijdag", "zaterdag", "zondag"],
    "de": ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"],
    "fr": ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"],
}

_MONTHS = {
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "nl": ["januari", "februari", "maart", "april", "mei", "juni", "juli",
           "augustus", "september", "oktober", "november", "december"],
    "de": ["Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
           "August", "September", "Oktober", "November", "Dezember"],
    "fr": ["janvier", "février", "mars", "avril", "mai", "juin", "juillet",
           "août", "septembre", "octobre", "novembre", "décembre"],
}


def format_booking_date(moment: datetime, locale: str) -> str:
    """Long-form date in the organization's locale, falling back to English.

    Examples:
        >>> format_booking_date(datetime(2024, 6, 3, 10, 0), "en")
        'Monday, June 3, 2024'
        >>> format_booking_date(datetime(2024, 6, 3, 10, 0), "de")
        'Montag, 3. Juni 2024'
    """
    lang = locale.split("-")[0].lower()
    if lang not in _WEEKDAYS:
        lang = "en"
    weekday = _WEEKDAYS[lang][moment.weekday()]
    month = _MONTHS[lang][moment.month - 1]
    if lang == "en":
        return f"{weekday}, {month} {moment.day}, {moment.year}"
    if lang == "de":
        return f"{weekday}, {moment.day}. {month} {moment.year}"
    return f"{weekday} {moment.day} {month} {moment.year}"


def format_booking_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def build_notification(
    booking: Booking, service_name: str, channel: BookingChannel
) -> Notification:
    suffix = " (via portal)" if channel == BookingChannel.PORTAL else ""
    return Notification(
        organization_id=booking.organization_id,
        title=f"New booking: {booking.guest.name}{suffix}",
        message=(
            f"{service_name} - {booking.starts_at.date().isoformat()} "
            f"at {format_booking_time(booking.starts_at)}"
        ),
        entity_id=booking.id,
    )


def build_activity_event(
    booking: Booking, service_name: str, channel: BookingChannel
) -> Optional[ActivityEvent]:
    """Timeline entry for the booking's client; None for bookings without one."""
    if booking.client_id is None:
        return None
    metadata = {
        "source": f"{channel.value}_booking",
        "booking_id": booking.id,
        "booking_type": service_name,
    }
    if booking.guest.phone:
        metadata["phone"] = booking.guest.phone
    return ActivityEvent(
        subject_id=booking.client_id,
        title=f"Booking: {service_name}",
        description=booking.notes,
        scheduled_at=booking.starts_at,
        metadata=metadata,
    )


def build_confirmation(
    booking: Booking, organization: OrganizationConfig
) -> Optional[BookingConfirmation]:
    """Confirmation email payload; None when the guest left no email."""
    if not booking.guest.email:
        return None
    return BookingConfirmation(
        recipient=booking.guest.email,
        name=booking.guest.name,
        org_name=organization.name,
        date_formatted=format_booking_date(booking.starts_at, organization.locale),
        time=format_booking_time(booking.starts_at),
        duration_minutes=booking.duration_minutes,
        status=booking.status,
        locale=organization.locale,
    )


def build_cancellation(
    booking: Booking, organization: OrganizationConfig
) -> Optional[BookingCancellation]:
    if not booking.guest.email:
        return None
    return BookingCancellation(
        recipient=booking.guest.email,
        name=booking.guest.name,
        org_name=organization.name,
        date_formatted=format_booking_date(booking.starts_at, organization.locale),
        time=format_booking_time(booking.starts_at),
        locale=organization.locale,
    )
