"""Tenant (bot) models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TenantInfo(BaseModel):
    """A bot with its derived counts."""
    id: str
    name: str
    website: Optional[str] = None
    created_at: datetime
    document_count: int = 0
    booking_count: int = 0
