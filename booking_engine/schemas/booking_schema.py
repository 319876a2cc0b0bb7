"""Booking, slot and booking-request data models."""

import datetime as dt
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_engine.errors import ErrorCode, BookingEngineError
from booking_engine.utils import TIME_PATTERN, clean_optional, is_valid_email, normalize_email

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields."


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# Statuses that hold time on the calendar.
OCCUPYING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


class LocationType(str, Enum):
    ONLINE = "ONLINE"
    IN_PERSON = "IN_PERSON"
    PHONE = "PHONE"


class GuestSnapshot(BaseModel):
    """Guest details as they were when the booking was made.

    Kept on the booking so it stays meaningful after the client or
    contact record changes.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    email: str = ""
    phone: Optional[str] = None


def _booking_id() -> str:
    return f"bk_{uuid.uuid4().hex[:12]}"


class Booking(BaseModel):
    """A booking on an organization's calendar."""

    id: str = Field(default_factory=_booking_id)
    organization_id: str
    client_id: Optional[str] = None
    contact_id: Optional[str] = None
    booking_type_id: Optional[str] = None
    guest: GuestSnapshot
    starts_at: dt.datetime
    ends_at: dt.datetime
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None
    location_type: LocationType = LocationType.ONLINE
    portal_visible: bool = False
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    cancelled_at: Optional[dt.datetime] = None

    @model_validator(mode="after")
    def _ends_after_start(self) -> "Booking":
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self

    @property
    def duration_minutes(self) -> int:
        return round((self.ends_at - self.starts_at).total_seconds() / 60)

    @property
    def occupies_time(self) -> bool:
        return self.status in OCCUPYING_STATUSES


class Contact(BaseModel):
    """Primary contact derived from a public booking."""

    id: str = Field(default_factory=lambda: f"ct_{uuid.uuid4().hex[:12]}")
    client_id: str
    first_name: str
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    is_primary: bool = True


class TimeSlot(BaseModel):
    """A candidate start time for one date and service duration."""

    time: str
    available: bool


# --------------------------------------------------------------------------- #
# Requests
# --------------------------------------------------------------------------- #


class _BookingRequestBase(BaseModel):
    """Fields shared by public and portal booking requests."""

    organization_id: str
    booking_type_id: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    date: dt.date
    time: str
    notes: Optional[str] = None

    @field_validator("organization_id")
    @classmethod
    def _require_organization(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        return value.strip()

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        if not TIME_PATTERN.match(value):
            raise ValueError("Please choose a valid time.")
        return value

    @field_validator("booking_type_id", "notes")
    @classmethod
    def _clean_text(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional(value)

    @model_validator(mode="after")
    def _require_service(self):
        if not self.booking_type_id and not self.duration_minutes:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        return self


class PublicBookingRequest(_BookingRequestBase):
    """Booking submitted from the public booking page by a guest."""

    name: str
    email: str
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = normalize_email(value)
        if not value:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        if not is_valid_email(value):
            raise ValueError("Please enter a valid email address.")
        return value

    @field_validator("phone")
    @classmethod
    def _clean_phone(cls, value: Optional[str]) -> Optional[str]:
        return clean_optional(value)


class PortalBookingRequest(_BookingRequestBase):
    """Booking submitted by an authenticated client through the portal."""

    client_id: str
    contact_id: Optional[str] = None

    @field_validator("client_id")
    @classmethod
    def _require_client(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        return value.strip()


# --------------------------------------------------------------------------- #
# Results
# --------------------------------------------------------------------------- #


class BookingResult(BaseModel):
    """Outcome of a booking-creation call."""

    success: bool
    booking_id: Optional[str] = None
    status: Optional[BookingStatus] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    field: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.error_code in (ErrorCode.SLOT_UNAVAILABLE, ErrorCode.TIMEOUT)

    @property
    def is_conflict(self) -> bool:
        return self.error_code == ErrorCode.SLOT_UNAVAILABLE

    @classmethod
    def ok(cls, booking_id: str, status: BookingStatus) -> "BookingResult":
        return cls(success=True, booking_id=booking_id, status=status)

    @classmethod
    def from_error(cls, exc: BookingEngineError) -> "BookingResult":
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.code,
            field=getattr(exc, "field", None),
        )
