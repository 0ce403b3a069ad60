"""
Tenant-scoped booking ledger.

Bookings are created by the dialogue once the visitor confirms, then
rescheduled or cancelled by later flows. Nothing is hard-deleted:
cancellation is a status change.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from docbot.errors import BookingNotFoundError, InvalidStatusError
from docbot.schemas.booking_schema import (
    ACTIVE_STATUSES,
    BookingDraft,
    BookingRecord,
    BookingStatus,
)
from docbot.storage.models import Booking

logger = logging.getLogger(__name__)


def _parse_status(status: "BookingStatus | str") -> BookingStatus:
    try:
        return BookingStatus(status)
    except ValueError:
        raise InvalidStatusError(str(status), [s.value for s in BookingStatus]) from None


class BookingLedger:
    """Create, look up, reschedule and cancel bookings."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    def create_booking(
        self,
        tenant_id: str,
        draft: BookingDraft,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> BookingRecord:
        """Persist a new booking and return it."""
        with self._sessions.begin() as db:
            booking = Booking(bot_id=tenant_id, status=status, **draft.model_dump())
            db.add(booking)
            db.flush()
            record = BookingRecord.model_validate(booking)
        logger.info(
            "Booking created: %s for %s on %s at %s",
            record.id, record.full_name, record.preferred_date, record.preferred_time,
        )
        return record

    def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        """Retrieve a booking by ID."""
        with self._sessions() as db:
            booking = db.get(Booking, booking_id)
            return BookingRecord.model_validate(booking) if booking else None

    def list_bookings(
        self,
        tenant_id: str,
        status: "BookingStatus | str | None" = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> list[BookingRecord]:
        """List a bot's bookings, newest first, optionally filtered."""
        query = select(Booking).where(Booking.bot_id == tenant_id)
        if status is not None:
            query = query.where(Booking.status == _parse_status(status))
        if phone:
            query = query.where(Booking.phone == phone)
        if email:
            query = query.where(Booking.email == email)
        query = query.order_by(Booking.created_at.desc())
        with self._sessions() as db:
            return [BookingRecord.model_validate(b) for b in db.scalars(query).all()]

    def latest_for_phone(self, tenant_id: str, phone: str) -> Optional[BookingRecord]:
        """Most recent booking for a phone number, whatever its status."""
        bookings = self.list_bookings(tenant_id, phone=phone)
        return bookings[0] if bookings else None

    def cancel_by_phone(self, tenant_id: str, phone: str) -> int:
        """Cancel every pending or confirmed booking for a phone number."""
        with self._sessions.begin() as db:
            bookings = db.scalars(
                select(Booking).where(
                    Booking.bot_id == tenant_id,
                    Booking.phone == phone,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
            ).all()
            for booking in bookings:
                booking.status = BookingStatus.CANCELLED
        logger.info("Cancelled %d bookings for %s (bot %s)", len(bookings), phone, tenant_id)
        return len(bookings)

    def reschedule_booking(
        self,
        booking_id: str,
        new_date: Optional[str] = None,
        new_time: Optional[str] = None,
    ) -> BookingRecord:
        """Move a booking to a new date and/or time.

        Raises:
            BookingNotFoundError: If no booking has this ID.
        """
        with self._sessions.begin() as db:
            booking = db.get(Booking, booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            if new_date:
                booking.preferred_date = new_date
            if new_time:
                booking.preferred_time = new_time
            db.flush()
            record = BookingRecord.model_validate(booking)
        logger.info(
            "Booking rescheduled: %s to %s %s",
            booking_id, record.preferred_date, record.preferred_time,
        )
        return record

    def update_status(self, booking_id: str, status: "BookingStatus | str") -> BookingRecord:
        """Set a booking's status.

        Raises:
            InvalidStatusError: If ``status`` is not a known status.
            BookingNotFoundError: If no booking has this ID.
        """
        new_status = _parse_status(status)
        with self._sessions.begin() as db:
            booking = db.get(Booking, booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            booking.status = new_status
            db.flush()
            record = BookingRecord.model_validate(booking)
        logger.info("Booking %s status set to %s", booking_id, new_status.value)
        return record
