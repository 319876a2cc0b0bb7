"""
In-memory availability rule store.

In production, this would read the organization's availability table
through the application's data-access layer.
"""

import asyncio
import logging
from typing import Iterable, Optional

from booking_engine.schemas.organization_schema import AvailabilityRule

logger = logging.getLogger(__name__)


class InMemoryAvailabilityStore:
    """Weekly rules keyed by ``(organization_id, day_of_week)``."""

    def __init__(self, rules: Iterable[AvailabilityRule] = ()) -> None:
        self._rules: dict[tuple[str, int], AvailabilityRule] = {}
        for rule in rules:
            self.set_rule(rule)

    def set_rule(self, rule: AvailabilityRule) -> None:
        """Replace the rule for the rule's organization and day."""
        self._rules[(rule.organization_id, rule.day_of_week)] = rule
        logger.debug(
            "Availability rule set for %s day %d: %s-%s",
            rule.organization_id, rule.day_of_week, rule.start_time, rule.end_time,
        )

    async def get_availability_rule(
        self, organization_id: str, day_of_week: int
    ) -> Optional[AvailabilityRule]:
        await asyncio.sleep(0)
        rule = self._rules.get((organization_id, day_of_week))
        if rule is None or not rule.is_active:
            return None
        return rule

    async def list_active_days(self, organization_id: str) -> list[int]:
        await asyncio.sleep(0)
        return sorted(
            day for (org_id, day), rule in self._rules.items()
            if org_id == organization_id and rule.is_active
        )

    def reset(self) -> None:
        self._rules.clear()
