"""
In-memory activity feed and confirmation outbox.

In production, notifications and timeline events are rows in the
application database, and the sender hands messages to the email
service. Here they are collected in lists so tests can inspect them.
"""

import asyncio
import logging

from booking_engine.schemas.activity_schema import (
    ActivityEvent,
    BookingCancellation,
    BookingConfirmation,
    Notification,
)

logger = logging.getLogger(__name__)


class InMemoryActivityFeed:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []
        self.events: list[ActivityEvent] = []

    async def emit_notification(self, notification: Notification) -> None:
        await asyncio.sleep(0)
        self.notifications.append(notification)
        logger.debug("Notification emitted: %s", notification.title)

    async def emit_activity_event(self, event: ActivityEvent) -> None:
        await asyncio.sleep(0)
        self.events.append(event)
        logger.debug("Activity event emitted: %s", event.title)

    def reset(self) -> None:
        self.notifications.clear()
        self.events.clear()


class OutboxSender:
    """Records outgoing booking emails instead of sending them."""

    def __init__(self) -> None:
        self.confirmations: list[BookingConfirmation] = []
        self.cancellations: list[BookingCancellation] = []

    async def send_booking_confirmation(self, message: BookingConfirmation) -> None:
        await asyncio.sleep(0)
        self.confirmations.append(message)
        logger.info("Confirmation queued for %s (%s)", message.recipient, message.status.value)

    async def send_booking_cancellation(self, message: BookingCancellation) -> None:
        await asyncio.sleep(0)
        self.cancellations.append(message)
        logger.info("Cancellation queued for %s", message.recipient)

    def reset(self) -> None:
        self.confirmations.clear()
        self.cancellations.clear()
