from booking_engine.store.activity import InMemoryActivityFeed, OutboxSender
from booking_engine.store.availability import InMemoryAvailabilityStore
from booking_engine.store.base import Collaborators
from booking_engine.store.booking import InMemoryBookingLedger
from booking_engine.store.customer import InMemoryClientDirectory
from booking_engine.store.guard import StorageGuard
from booking_engine.store.organization import InMemoryOrganizationDirectory


def in_memory_collaborators(latency_seconds: float = 0.0) -> Collaborators:
    """Fresh, empty in-memory implementations of every collaborator."""
    return Collaborators(
        availability=InMemoryAvailabilityStore(),
        ledger=InMemoryBookingLedger(latency_seconds=latency_seconds),
        organizations=InMemoryOrganizationDirectory(),
        clients=InMemoryClientDirectory(),
        activity=InMemoryActivityFeed(),
        sender=OutboxSender(),
    )


__all__ = [
    "Collaborators",
    "StorageGuard",
    "InMemoryActivityFeed",
    "InMemoryAvailabilityStore",
    "InMemoryBookingLedger",
    "InMemoryClientDirectory",
    "InMemoryOrganizationDirectory",
    "OutboxSender",
    "in_memory_collaborators",
]
