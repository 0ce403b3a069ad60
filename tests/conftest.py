"""Shared test fixtures and helpers."""

import asyncio
from datetime import date
from typing import Optional

import pytest

from docbot.config import DialogueConfig, ModelConfig, RetrievalConfig
from docbot.conversation.session_store import InMemorySessionStore
from docbot.conversation.state_machine import DialogueManager
from docbot.errors import UpstreamError
from docbot.schemas.booking_schema import BookingDraft
from docbot.schemas.conversation_schema import ChatMessage
from docbot.schemas.retrieval_schema import SearchHit
from docbot.services.chat_service import ChatService
from docbot.storage.bookings import BookingLedger
from docbot.storage.conversations import ConversationLog
from docbot.storage.database import create_db_engine, create_session_factory, create_tables
from docbot.storage.documents import DocumentStore
from docbot.storage.tenants import TenantRegistry

TODAY = date(2024, 3, 20)

SAMPLE_DOCUMENT = (
    "Acme Interiors designs kitchens and living rooms for apartments in Pune. "
    "Our consultation fee is waived for projects above five lakh rupees. "
    "Modular kitchen installation usually takes three weeks after design approval. "
    "We also offer wardrobe design, false ceiling work and lighting plans. "
    "The studio is open Monday to Saturday from ten in the morning to seven in the evening."
)


class FakeGenerator:
    """Answer generator double that records its calls."""

    def __init__(
        self,
        answer: str = "Modular kitchens take about three weeks.",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def generate(
        self,
        question: str,
        hits: list[SearchHit],
        history: list[ChatMessage],
        language: str = "en",
        bot_name: Optional[str] = None,
    ) -> str:
        self.calls.append(
            {"question": question, "hits": hits, "history": history, "language": language}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


def make_draft(**overrides) -> BookingDraft:
    values = {
        "full_name": "Ravi Kumar",
        "phone": "9876543210",
        "preferred_date": "2024-03-28",
        "preferred_time": "15:00",
        "service": "Project Discussion",
    }
    values.update(overrides)
    return BookingDraft(**values)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def tenants(session_factory):
    return TenantRegistry(session_factory)


@pytest.fixture
def tenant_id(tenants):
    return tenants.create_tenant("Acme Interiors", "https://acme.example")


@pytest.fixture
def other_tenant_id(tenants):
    return tenants.create_tenant("Other Bot")


@pytest.fixture
def documents(session_factory):
    return DocumentStore(session_factory)


@pytest.fixture
def bookings(session_factory):
    return BookingLedger(session_factory)


@pytest.fixture
def conversations(session_factory):
    return ConversationLog(session_factory)


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def dialogue(bookings, session_store):
    return DialogueManager(bookings, session_store, DialogueConfig(), today=lambda: TODAY)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def chat_service(dialogue, documents, conversations, generator):
    return ChatService(
        dialogue,
        documents,
        conversations,
        generator,
        retrieval=RetrievalConfig(),
        model=ModelConfig(timeout_sec=0.05, max_attempts=2),
        dialogue_config=DialogueConfig(),
    )


@pytest.fixture
def upstream_error():
    return UpstreamError("model unavailable", retryable=False)
