"""Client records as seen by the booking engine."""

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ClientStatus(str, Enum):
    LEAD = "LEAD"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Client(BaseModel):
    """Client record from the CRM side of the application."""

    id: str = Field(default_factory=lambda: f"cl_{uuid.uuid4().hex[:12]}")
    organization_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    status: ClientStatus = ClientStatus.LEAD
