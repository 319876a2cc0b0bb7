"""Fire-and-forget delivery of booking emails.

The booking call returns as soon as the booking is committed. Sending the
confirmation runs in a detached task whose failure is logged and never
reaches the caller.
"""

import asyncio
from typing import Awaitable, Callable

from booking_engine.logging_context import get_request_logger

logger = get_request_logger(__name__)


class FireAndForgetDispatcher:
    """Runs send callables in background tasks and keeps them referenced until done."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def dispatch(self, label: str, send: Callable[[], Awaitable[None]]) -> asyncio.Task:
        async def _run() -> None:
            try:
                await send()
            except Exception:
                logger.exception("Background %s failed", label)

        task = asyncio.create_task(_run(), name=f"dispatch:{label}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight send. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
