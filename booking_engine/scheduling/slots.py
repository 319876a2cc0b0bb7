"""
Slot generation and conflict filtering for a single calendar day.

Two pure steps, kept separate so each can be tested on its own:

1. ``generate_candidate_starts`` walks the day's availability window on a
   fixed grid and yields start offsets (minutes from midnight) for which
   the whole service still fits before the window closes.
2. ``filter_conflicts`` marks every candidate available or not by testing
   its buffered interval against the day's occupying bookings and, for
   today, against the current time.

``compute_day_slots`` composes both. Nothing here does I/O or caching;
callers fetch the rule and the bookings fresh for every query.

Usage:
    slots = compute_day_slots(rule, bookings, date(2024, 6, 3), 30, 15, now=now)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional, Sequence

from booking_engine.config import settings
from booking_engine.schemas.booking_schema import Booking, TimeSlot
from booking_engine.schemas.organization_schema import AvailabilityRule
from booking_engine.utils import MINUTES_PER_DAY, minute_of_day, minutes_to_time_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusyInterval:
    """Half-open ``[start, end)`` minute-of-day range held by a booking."""

    start: int
    end: int


def generate_candidate_starts(
    availability_start: int,
    availability_end: int,
    duration_minutes: int,
    step_minutes: Optional[int] = None,
) -> Iterator[int]:
    """Yield candidate start offsets in ascending order.

    The grid is anchored at ``availability_start`` and advances by
    ``step_minutes`` regardless of the service duration, so a 45-minute
    service still starts on 30-minute boundaries.
    """
    step = step_minutes or settings.scheduling.slot_step_minutes
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be > 0, got {duration_minutes}")
    if step <= 0:
        raise ValueError(f"step_minutes must be > 0, got {step}")

    t = availability_start
    while t + duration_minutes <= availability_end:
        yield t
        t += step


def busy_intervals_for_day(
    bookings: Iterable[Booking], day: date, horizon_minutes: int = 0
) -> list[BusyInterval]:
    """Project occupying bookings onto minute offsets from ``day``'s midnight.

    Cancelled and other non-occupying bookings are skipped. Offsets are not
    clipped, so a booking late on the previous day has a negative start and
    one early on the next day starts past 1440. Only bookings that come
    within ``horizon_minutes`` of ``day`` are returned.
    """
    midnight = datetime.combine(day, datetime.min.time())
    intervals = []
    for booking in bookings:
        if not booking.occupies_time:
            continue
        start = int((booking.starts_at - midnight).total_seconds() // 60)
        end = int((booking.ends_at - midnight).total_seconds() // 60)
        if end <= -horizon_minutes or start >= MINUTES_PER_DAY + horizon_minutes:
            continue
        intervals.append(BusyInterval(start=start, end=end))
    return intervals


def has_conflict(
    slot_start: int,
    duration_minutes: int,
    buffer_minutes: int,
    busy: Sequence[BusyInterval],
    buffer_after: Optional[int] = None,
) -> bool:
    """Return True if the buffered slot overlaps any busy interval.

    ``buffer_minutes`` pads the slot's start; the end is padded by
    ``buffer_after`` when given, otherwise by ``buffer_minutes`` too.
    """
    after = buffer_minutes if buffer_after is None else buffer_after
    buffered_start = slot_start - buffer_minutes
    buffered_end = slot_start + duration_minutes + after
    return any(buffered_start < b.end and buffered_end > b.start for b in busy)


def filter_conflicts(
    candidates: Iterable[int],
    bookings: Iterable[Booking],
    day: date,
    duration_minutes: int,
    buffer_minutes: int,
    now: Optional[datetime] = None,
    buffer_after: Optional[int] = None,
) -> list[TimeSlot]:
    """Mark each candidate start available or unavailable.

    A candidate is unavailable when its buffered interval overlaps an
    occupying booking, or when ``day`` is today and the candidate does
    not start strictly after the current minute.
    """
    after = buffer_minutes if buffer_after is None else buffer_after
    if buffer_minutes < 0 or after < 0:
        raise ValueError(f"buffers must be >= 0, got {buffer_minutes}/{after}")

    now = now or datetime.now()
    busy = busy_intervals_for_day(bookings, day, horizon_minutes=max(buffer_minutes, after))
    cutoff = minute_of_day(now) if day == now.date() else None

    slots = []
    for start in candidates:
        is_past = cutoff is not None and start <= cutoff
        available = not is_past and not has_conflict(
            start, duration_minutes, buffer_minutes, busy, buffer_after=after
        )
        slots.append(TimeSlot(time=minutes_to_time_str(start), available=available))
    return slots


def compute_day_slots(
    rule: Optional[AvailabilityRule],
    bookings: Iterable[Booking],
    day: date,
    duration_minutes: int,
    buffer_minutes: int,
    now: Optional[datetime] = None,
    step_minutes: Optional[int] = None,
    buffer_after: Optional[int] = None,
) -> list[TimeSlot]:
    """Build the full slot list for one day. No active rule means no slots."""
    if rule is None or not rule.is_active:
        return []

    candidates = generate_candidate_starts(
        rule.start_minutes, rule.end_minutes, duration_minutes, step_minutes
    )
    slots = filter_conflicts(
        candidates, bookings, day, duration_minutes, buffer_minutes, now,
        buffer_after=buffer_after,
    )
    logger.debug(
        "Computed %d slots (%d available) for %s, duration=%d buffer=%d/%s",
        len(slots), sum(s.available for s in slots), day.isoformat(),
        duration_minutes, buffer_minutes, buffer_after,
    )
    return slots


def slot_bounds(day: date, time_str: str, duration_minutes: int) -> tuple[datetime, datetime]:
    """Return ``(starts_at, ends_at)`` for a slot on ``day``."""
    hours, minutes = (int(part) for part in time_str.split(":"))
    starts_at = datetime.combine(day, datetime.min.time()).replace(hour=hours, minute=minutes)
    return starts_at, starts_at + timedelta(minutes=duration_minutes)
