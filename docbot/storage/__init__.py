from docbot.storage.bookings import BookingLedger
from docbot.storage.conversations import ConversationLog
from docbot.storage.database import create_db_engine, create_session_factory, create_tables
from docbot.storage.documents import DocumentStore
from docbot.storage.tenants import TenantRegistry

__all__ = [
    "BookingLedger",
    "ConversationLog",
    "DocumentStore",
    "TenantRegistry",
    "create_db_engine",
    "create_session_factory",
    "create_tables",
]
