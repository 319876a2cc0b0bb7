"""
In-memory organization directory with the services each organization offers.

In production, this would read organization settings and booking types
from the application's database.
"""

import asyncio
import logging
from typing import Iterable, Optional

from booking_engine.schemas.organization_schema import BookingType, OrganizationConfig

logger = logging.getLogger(__name__)


class InMemoryOrganizationDirectory:
    def __init__(
        self,
        organizations: Iterable[OrganizationConfig] = (),
        booking_types: Iterable[BookingType] = (),
    ) -> None:
        self._organizations: dict[str, OrganizationConfig] = {o.id: o for o in organizations}
        self._booking_types: dict[str, BookingType] = {t.id: t for t in booking_types}

    def add_organization(self, organization: OrganizationConfig) -> OrganizationConfig:
        self._organizations[organization.id] = organization
        return organization

    def add_booking_type(self, booking_type: BookingType) -> BookingType:
        self._booking_types[booking_type.id] = booking_type
        return booking_type

    async def get_organization_config(self, organization_id: str) -> Optional[OrganizationConfig]:
        await asyncio.sleep(0)
        return self._organizations.get(organization_id)

    async def get_booking_type(self, booking_type_id: str) -> Optional[BookingType]:
        await asyncio.sleep(0)
        return self._booking_types.get(booking_type_id)

    async def list_booking_types(self, organization_id: str, is_public: bool) -> list[BookingType]:
        """Active booking types for one channel, ordered by name."""
        await asyncio.sleep(0)
        return sorted(
            (
                t for t in self._booking_types.values()
                if t.organization_id == organization_id
                and t.is_active
                and t.is_public == is_public
            ),
            key=lambda t: t.name,
        )

    def reset(self) -> None:
        self._organizations.clear()
        self._booking_types.clear()
