"""Wiring of storage, dialogue and generation into one service graph."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from docbot.config import AppConfig, settings
from docbot.conversation.session_store import InMemorySessionStore, SessionStore
from docbot.conversation.state_machine import DialogueManager
from docbot.generation.answer_generator import (
    AnswerGenerator,
    OpenAIAnswerGenerator,
    PlainTextExtractor,
    TextExtractor,
)
from docbot.services.chat_service import ChatService
from docbot.storage.bookings import BookingLedger
from docbot.storage.conversations import ConversationLog
from docbot.storage.database import create_db_engine, create_session_factory, create_tables
from docbot.storage.documents import DocumentStore
from docbot.storage.tenants import TenantRegistry

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler needs."""
    config: AppConfig
    engine: Engine
    tenants: TenantRegistry
    documents: DocumentStore
    conversations: ConversationLog
    bookings: BookingLedger
    sessions: SessionStore
    dialogue: DialogueManager
    chat: ChatService
    extractor: TextExtractor


def build_container(
    config: Optional[AppConfig] = None,
    generator: Optional[AnswerGenerator] = None,
    database_url: Optional[str] = None,
    today: Callable[[], date] = date.today,
) -> ServiceContainer:
    """
    Build the service graph and create tables if needed.

    Args:
        config: Application config; defaults to the loaded settings.
        generator: Answer generator; defaults to the OpenAI generator.
        database_url: Overrides the configured database URL.
        today: Clock used for relative date extraction.
    """
    config = config or settings
    engine = create_db_engine(database_url or config.database.url, config.database.echo)
    create_tables(engine)
    session_factory = create_session_factory(engine)

    bookings = BookingLedger(session_factory)
    documents = DocumentStore(
        session_factory,
        chunk_size=config.retrieval.chunk_size,
        overlap=config.retrieval.chunk_overlap,
        min_chars=config.retrieval.min_document_chars,
    )
    conversations = ConversationLog(session_factory)
    sessions = InMemorySessionStore(ttl_seconds=config.sessions.ttl_minutes * 60)
    dialogue = DialogueManager(bookings, sessions, config.dialogue, today=today)
    chat = ChatService(
        dialogue,
        documents,
        conversations,
        generator or OpenAIAnswerGenerator(config.model),
        retrieval=config.retrieval,
        model=config.model,
        dialogue_config=config.dialogue,
    )
    logger.info("Services ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return ServiceContainer(
        config=config,
        engine=engine,
        tenants=TenantRegistry(session_factory),
        documents=documents,
        conversations=conversations,
        bookings=bookings,
        sessions=sessions,
        dialogue=dialogue,
        chat=chat,
        extractor=PlainTextExtractor(),
    )
