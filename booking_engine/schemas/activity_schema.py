"""Records the engine emits for other parts of the application."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from booking_engine.schemas.booking_schema import BookingStatus


class Notification(BaseModel):
    """In-app notification shown to the organization's team."""

    organization_id: str
    type: str = "new_booking"
    title: str
    message: str
    entity_type: str = "booking"
    entity_id: str


class ActivityEvent(BaseModel):
    """Timeline entry on the client record."""

    subject_id: str
    type: str = "APPOINTMENT"
    title: str
    description: Optional[str] = None
    scheduled_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class BookingConfirmation(BaseModel):
    """Payload handed to the confirmation sender."""

    recipient: str
    name: str
    org_name: str
    date_formatted: str
    time: str
    duration_minutes: int
    status: BookingStatus
    locale: str = "en"


class BookingCancellation(BaseModel):
    """Payload handed to the cancellation sender."""

    recipient: str
    name: str
    org_name: str
    date_formatted: str
    time: str
    locale: str = "en"
