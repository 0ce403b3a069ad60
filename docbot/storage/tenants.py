"""Tenant (bot) registry."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from docbot.errors import TenantNotFoundError
from docbot.schemas.tenant_schema import TenantInfo
from docbot.storage.models import Booking, DocumentChunk, Tenant

logger = logging.getLogger(__name__)


class TenantRegistry:
    """Creates bots and reports their document and booking counts."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    def create_tenant(self, name: str, website: Optional[str] = None) -> str:
        """Create a new bot and return its ID."""
        if not name or not name.strip():
            raise ValueError("Bot name is required")
        with self._sessions.begin() as db:
            tenant = Tenant(name=name.strip(), website=website)
            db.add(tenant)
            db.flush()
            tenant_id = tenant.id
        logger.info("Bot created: %s (%s)", tenant_id, name)
        return tenant_id

    def exists(self, tenant_id: str) -> bool:
        with self._sessions() as db:
            return db.get(Tenant, tenant_id) is not None

    def get_tenant(self, tenant_id: str) -> TenantInfo:
        """Return a bot with its derived counts.

        Raises:
            TenantNotFoundError: If no bot has this ID.
        """
        with self._sessions() as db:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None:
                raise TenantNotFoundError(tenant_id)
            document_count = db.scalar(
                select(func.count(DocumentChunk.id)).where(DocumentChunk.bot_id == tenant_id)
            )
            booking_count = db.scalar(
                select(func.count(Booking.id)).where(Booking.bot_id == tenant_id)
            )
            return TenantInfo(
                id=tenant.id,
                name=tenant.name,
                website=tenant.website,
                created_at=tenant.created_at,
                document_count=document_count or 0,
                booking_count=booking_count or 0,
            )

    def require(self, tenant_id: str) -> None:
        """Raise TenantNotFoundError unless the bot exists."""
        if not self.exists(tenant_id):
            raise TenantNotFoundError(tenant_id)
