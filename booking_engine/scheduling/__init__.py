from booking_engine.scheduling.locks import DayLockRegistry
from booking_engine.scheduling.slots import (
    compute_day_slots,
    filter_conflicts,
    generate_candidate_starts,
)
from booking_engine.scheduling.status import (
    BookingStatusMachine,
    StatusTrigger,
    initial_status,
)

__all__ = [
    "compute_day_slots",
    "filter_conflicts",
    "generate_candidate_starts",
    "BookingStatusMachine",
    "StatusTrigger",
    "initial_status",
    "DayLockRegistry",
]
