import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from docbot.schemas.booking_schema import BookingStatus
from docbot.storage.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tenant(Base):
    __tablename__ = "bots"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    chunks = relationship("DocumentChunk", back_populates="tenant")
    bookings = relationship("Booking", back_populates="tenant")


class DocumentChunk(Base):
    __tablename__ = "document_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bot_id = Column(String(36), ForeignKey("bots.id"), nullable=False, index=True)
    chunk_text = Column(Text, nullable=False)
    term_freq = Column(Text, nullable=False)  # JSON token -> count
    source_file = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tenant = relationship("Tenant", back_populates="chunks")


class ConversationMessage(Base):
    __tablename__ = "conversation_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bot_id = Column(String(36), ForeignKey("bots.id"), nullable=False, index=True)
    session_id = Column(String, nullable=False, index=True)
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_id)
    bot_id = Column(String(36), ForeignKey("bots.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    phone = Column(String(10), nullable=False, index=True)
    email = Column(String, nullable=True)
    service = Column(String, nullable=True)
    preferred_date = Column(String(10), nullable=False)
    preferred_time = Column(String(5), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(
        Enum(
            BookingStatus,
            native_enum=False,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    tenant = relationship("Tenant", back_populates="bookings")
