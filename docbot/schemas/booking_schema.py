"""Booking data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class BookingDraft(BaseModel):
    """Slot values collected by the booking dialogue, ready to persist."""
    full_name: str
    phone: str
    preferred_date: str
    preferred_time: str
    email: Optional[str] = None
    service: Optional[str] = None
    notes: Optional[str] = None


class BookingRecord(BaseModel):
    """A persisted booking."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    bot_id: str
    full_name: str
    phone: str
    preferred_date: str
    preferred_time: str
    email: Optional[str] = None
    service: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
