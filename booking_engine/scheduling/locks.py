"""Per-organization, per-day advisory locks.

The booking writer holds one of these from the availability re-check until
the booking row is written, so two requests for the same organization and
date cannot interleave their check-then-act steps inside one process.
Bookings on different days or for different organizations never wait on
each other.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class DayLockRegistry:
    """Hands out one ``asyncio.Lock`` per ``(organization_id, date)`` key.

    Locks are held weakly and disappear once no request is using them.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[tuple[str, date], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def get(self, organization_id: str, day: date) -> asyncio.Lock:
        key = (organization_id, day)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, organization_id: str, day: date) -> AsyncIterator[None]:
        lock = self.get(organization_id, day)
        if lock.locked():
            logger.debug("Waiting for booking lock on %s/%s", organization_id, day.isoformat())
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
