"""
In-memory client directory.

In production, this would query the CRM's client table. Public bookings
find an existing client by email within the organization or create a new
lead; portal bookings only look clients up.
"""

import asyncio
import logging
from typing import Iterable, Optional

from booking_engine.schemas.customer_schema import Client, ClientStatus
from booking_engine.utils import normalize_email

logger = logging.getLogger(__name__)


class InMemoryClientDirectory:
    def __init__(self, clients: Iterable[Client] = ()) -> None:
        self._clients: dict[str, Client] = {c.id: c for c in clients}
        self._lock = asyncio.Lock()

    def add_client(self, client: Client) -> Client:
        self._clients[client.id] = client
        return client

    async def resolve_or_create_client(
        self,
        organization_id: str,
        email: str,
        name: str,
        phone: Optional[str] = None,
    ) -> str:
        """Return the id of the organization's client with ``email``, creating a lead if needed."""
        email = normalize_email(email)
        await asyncio.sleep(0)
        async with self._lock:
            for client in self._clients.values():
                if client.organization_id == organization_id and client.email == email:
                    logger.debug("Returning client found: %s", client.id)
                    return client.id

            client = Client(
                organization_id=organization_id,
                name=name.strip(),
                email=email,
                phone=phone,
                status=ClientStatus.LEAD,
            )
            self._clients[client.id] = client
        logger.info("New client created: %s (%s)", client.id, organization_id)
        return client.id

    async def get_client(self, client_id: str) -> Optional[Client]:
        await asyncio.sleep(0)
        return self._clients.get(client_id)

    def all_clients(self) -> list[Client]:
        return list(self._clients.values())

    def reset(self) -> None:
        self._clients.clear()
