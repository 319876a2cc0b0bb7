"""Timeout wrapper applied to every collaborator call."""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from booking_engine.config import settings
from booking_engine.errors import StorageTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageGuard:
    """Awaits a collaborator call, turning a slow call into ``StorageTimeoutError``."""

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self.timeout_seconds = timeout_seconds or settings.storage.timeout_seconds

    async def __call__(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Storage call %s timed out after %.1fs", operation, self.timeout_seconds
            )
            raise StorageTimeoutError(operation, self.timeout_seconds) from None
