"""Organization, service and availability-rule data models."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_engine.config import settings
from booking_engine.utils import time_str_to_minutes


class BookingChannel(str, Enum):
    """Entry point a booking came through."""

    PUBLIC = "public"
    PORTAL = "portal"


class AvailabilityRule(BaseModel):
    """Weekly opening window for one day of the week (Sunday = 0)."""

    model_config = ConfigDict(frozen=True)

    organization_id: str
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_active: bool = True

    @model_validator(mode="after")
    def _start_before_end(self) -> "AvailabilityRule":
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def start_minutes(self) -> int:
        return time_str_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_str_to_minutes(self.end_time)


class BookingType(BaseModel):
    """A bookable service offered by an organization."""

    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price: Optional[Decimal] = None
    currency: str = "EUR"
    color: Optional[str] = None
    requires_confirmation: bool = False
    is_active: bool = True
    is_public: bool = True
    # None means the channel's buffer applies.
    buffer_before: Optional[int] = Field(default=None, ge=0)
    buffer_after: Optional[int] = Field(default=None, ge=0)


class ChannelSettings(BaseModel):
    """Booking settings for one channel of an organization."""

    title: Optional[str] = None
    durations: list[int] = Field(default_factory=list)
    buffer_minutes: int = Field(default=0, ge=0)
    requires_confirmation: bool = False

    @field_validator("durations")
    @classmethod
    def _positive_durations(cls, value: list[int]) -> list[int]:
        if any(d <= 0 for d in value):
            raise ValueError("durations must be positive")
        return value


class OrganizationConfig(BaseModel):
    """Organization settings the engine reads at booking time."""

    id: str
    name: str
    locale: str = Field(default_factory=lambda: settings.scheduling.default_locale)
    public: ChannelSettings = Field(
        default_factory=lambda: ChannelSettings(title="Intro Call", durations=[15, 30])
    )
    portal: ChannelSettings = Field(
        default_factory=lambda: ChannelSettings(durations=[30, 60])
    )

    def channel(self, channel: BookingChannel) -> ChannelSettings:
        return self.public if channel == BookingChannel.PUBLIC else self.portal


class BookingConfig(BaseModel):
    """What a booking page needs to render its service picker."""

    organization_name: str
    title: Optional[str] = None
    durations: list[int] = Field(default_factory=list)
    booking_types: list[BookingType] = Field(default_factory=list)
