"""Persisted conversation history per (bot, session)."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from docbot.schemas.conversation_schema import ChatMessage, MessageRole
from docbot.storage.models import ConversationMessage

logger = logging.getLogger(__name__)


class ConversationLog:
    """Append-only message log read back as a bounded window."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    def append_turn(self, tenant_id: str, session_id: str, user_text: str, reply: str) -> None:
        """Store a user message and the assistant reply in one transaction."""
        with self._sessions.begin() as db:
            db.add_all([
                ConversationMessage(
                    bot_id=tenant_id, session_id=session_id,
                    role=MessageRole.USER.value, content=user_text,
                ),
                ConversationMessage(
                    bot_id=tenant_id, session_id=session_id,
                    role=MessageRole.ASSISTANT.value, content=reply,
                ),
            ])

    def recent(self, tenant_id: str, session_id: str, limit: int = 10) -> list[ChatMessage]:
        """Return the last ``limit`` messages, oldest first."""
        if limit <= 0:
            return []
        with self._sessions() as db:
            rows = db.scalars(
                select(ConversationMessage)
                .where(
                    ConversationMessage.bot_id == tenant_id,
                    ConversationMessage.session_id == session_id,
                )
                .order_by(ConversationMessage.id.desc())
                .limit(limit)
            ).all()
            messages = [ChatMessage.model_validate(row) for row in rows]
        messages.reverse()
        return messages

    def clear(self, tenant_id: str, session_id: str) -> int:
        """Delete every message of a (bot, session) pair and return the count."""
        with self._sessions.begin() as db:
            removed = db.execute(
                delete(ConversationMessage).where(
                    ConversationMessage.bot_id == tenant_id,
                    ConversationMessage.session_id == session_id,
                )
            ).rowcount
        logger.info("Cleared %d messages for bot %s session %s", removed, tenant_id, session_id)
        return removed or 0
