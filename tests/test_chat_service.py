"""Tests for chat turn orchestration."""

import asyncio
import time

import pytest

from docbot.config import DialogueConfig, ModelConfig, RetrievalConfig
from docbot.conversation.session_store import DialogueState
from docbot.errors import UpstreamError
from docbot.logging_context import get_session_id
from docbot.schemas.conversation_schema import DialogueAction, MessageRole
from docbot.services.chat_service import ChatService
from tests.conftest import SAMPLE_DOCUMENT, FakeGenerator

QUESTION = "How long does kitchen installation take?"


def _service(dialogue, documents, conversations, generator, max_attempts=2):
    return ChatService(
        dialogue,
        documents,
        conversations,
        generator,
        retrieval=RetrievalConfig(),
        model=ModelConfig(timeout_sec=0.05, max_attempts=max_attempts),
        dialogue_config=DialogueConfig(),
    )


class FlakyGenerator(FakeGenerator):
    """Hangs on the first call, answers on later ones."""

    async def generate(self, question, hits, history, language="en", bot_name=None):
        self.calls.append({"question": question})
        if len(self.calls) == 1:
            await asyncio.sleep(1)
        return self.answer


class TestDialogueTurns:
    @pytest.mark.asyncio
    async def test_dialogue_reply_skips_generator(self, chat_service, generator, tenant_id):
        result = await chat_service.handle_turn(tenant_id, "web-1", "book appointment")
        assert result.action == DialogueAction.ASK_NAME
        assert result.sources == []
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_dialogue_turn_is_saved(self, chat_service, tenant_id):
        await chat_service.handle_turn(tenant_id, "web-1", "hi")
        history = chat_service.get_history(tenant_id, "web-1")
        assert [m.role for m in history] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert history[0].content == "hi"

    @pytest.mark.asyncio
    async def test_booking_through_chat(self, chat_service, bookings, tenant_id):
        result = None
        for message in ["book appointment", "Ravi Kumar", "9876543210", "28", "3pm", "yes"]:
            result = await chat_service.handle_turn(tenant_id, "web-1", message)
        assert result.action == DialogueAction.CREATED
        assert result.booking.preferred_date == "2024-03-28"
        assert result.booking_id == bookings.list_bookings(tenant_id)[0].id

    @pytest.mark.asyncio
    async def test_session_id_is_bound_for_logging(self, chat_service, tenant_id):
        await chat_service.handle_turn(tenant_id, "visitor-42", "hi")
        assert get_session_id() == "visitor-42"


class TestRetrievalTurns:
    @pytest.mark.asyncio
    async def test_empty_corpus(self, chat_service, generator, tenant_id):
        result = await chat_service.handle_turn(tenant_id, "web-1", QUESTION)
        assert result.action == DialogueAction.NO_DOCUMENTS
        assert result.reply == "No information found. Please upload a PDF first."
        assert generator.calls == []
        assert len(chat_service.get_history(tenant_id, "web-1")) == 2

    @pytest.mark.asyncio
    async def test_empty_corpus_in_hindi(self, chat_service, tenant_id):
        result = await chat_service.handle_turn(tenant_id, "web-1", QUESTION, language="hi")
        assert "PDF" in result.reply
        assert result.reply.startswith("कोई जानकारी")

    @pytest.mark.asyncio
    async def test_answer_with_sources(self, chat_service, documents, generator, tenant_id):
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT, "acme.txt")
        result = await chat_service.handle_turn(tenant_id, "web-1", QUESTION)

        assert result.action == DialogueAction.ANSWER
        assert result.reply == generator.answer
        assert len(result.sources) == 1
        assert result.sources[0].source_file == "acme.txt"
        assert generator.calls[0]["hits"] == result.sources

    @pytest.mark.asyncio
    async def test_history_is_passed_to_generator(self, chat_service, documents, generator, tenant_id):
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)
        await chat_service.handle_turn(tenant_id, "web-1", QUESTION)
        await chat_service.handle_turn(tenant_id, "web-1", "And what about wardrobes?")

        assert generator.calls[0]["history"] == []
        second_history = generator.calls[1]["history"]
        assert [m.content for m in second_history] == [QUESTION, generator.answer]

    @pytest.mark.asyncio
    async def test_history_is_per_session(self, chat_service, documents, generator, tenant_id):
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)
        await chat_service.handle_turn(tenant_id, "web-1", QUESTION)
        await chat_service.handle_turn(tenant_id, "web-2", QUESTION)
        assert generator.calls[1]["history"] == []

    @pytest.mark.asyncio
    async def test_language_reaches_generator(self, chat_service, documents, generator, tenant_id):
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)
        await chat_service.handle_turn(tenant_id, "web-1", QUESTION, language="hi")
        assert generator.calls[0]["language"] == "hi"


class TestGenerationFailures:
    @pytest.mark.asyncio
    async def test_upstream_error_saves_nothing(
        self, dialogue, documents, conversations, tenant_id, upstream_error
    ):
        generator = FakeGenerator(error=upstream_error)
        service = _service(dialogue, documents, conversations, generator)
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)

        result = await service.handle_turn(tenant_id, "web-1", QUESTION)

        assert result.action == DialogueAction.ERROR
        assert result.reply.startswith("Sorry")
        assert service.get_history(tenant_id, "web-1") == []
        assert len(generator.calls) == 1

    @pytest.mark.asyncio
    async def test_retryable_error_is_retried(self, dialogue, documents, conversations, tenant_id):
        generator = FakeGenerator(error=UpstreamError("rate limited", retryable=True))
        service = _service(dialogue, documents, conversations, generator, max_attempts=3)
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)

        result = await service.handle_turn(tenant_id, "web-1", QUESTION)

        assert result.action == DialogueAction.ERROR
        assert len(generator.calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_on_every_attempt(self, dialogue, documents, conversations, tenant_id):
        generator = FakeGenerator(delay=1)
        service = _service(dialogue, documents, conversations, generator)
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)

        result = await service.handle_turn(tenant_id, "web-1", QUESTION)

        assert result.action == DialogueAction.ERROR
        assert len(generator.calls) == 2
        assert service.get_history(tenant_id, "web-1") == []

    @pytest.mark.asyncio
    async def test_timeout_then_success(self, dialogue, documents, conversations, tenant_id):
        generator = FlakyGenerator()
        service = _service(dialogue, documents, conversations, generator)
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT)

        result = await service.handle_turn(tenant_id, "web-1", QUESTION)

        assert result.action == DialogueAction.ANSWER
        assert len(generator.calls) == 2


class TestHistoryManagement:
    @pytest.mark.asyncio
    async def test_get_history_limit(self, chat_service, tenant_id):
        for message in ["hi", "hello", "hey"]:
            await chat_service.handle_turn(tenant_id, "web-1", message)
        history = chat_service.get_history(tenant_id, "web-1", limit=3)
        assert len(history) == 3
        assert history[-1].role == MessageRole.ASSISTANT

    @pytest.mark.asyncio
    async def test_clear_history_keeps_dialogue_state(self, chat_service, session_store, tenant_id):
        await chat_service.handle_turn(tenant_id, "web-1", "book appointment")
        assert chat_service.clear_history(tenant_id, "web-1") == 2
        assert chat_service.get_history(tenant_id, "web-1") == []
        assert session_store.get(tenant_id, "web-1").state == DialogueState.BOOKING_NAME

    def test_clear_empty_history(self, chat_service, tenant_id):
        assert chat_service.clear_history(tenant_id, "nobody") == 0

    @pytest.mark.asyncio
    async def test_clear_history_can_reset_dialogue(self, chat_service, session_store, tenant_id):
        await chat_service.handle_turn(tenant_id, "web-1", "book appointment")
        assert chat_service.clear_history(tenant_id, "web-1", reset_dialogue=True) == 2
        assert session_store.get(tenant_id, "web-1").state == DialogueState.IDLE

        result = await chat_service.handle_turn(tenant_id, "web-1", "Ravi Kumar")
        assert result.action != DialogueAction.ASK_PHONE

    @pytest.mark.asyncio
    async def test_default_history_listing_exceeds_prompt_window(self, chat_service, tenant_id):
        for _ in range(12):
            await chat_service.handle_turn(tenant_id, "web-1", "hi")
        assert len(chat_service.get_history(tenant_id, "web-1")) == 24


class TestEventLoop:
    @pytest.mark.asyncio
    async def test_slow_search_does_not_block_loop(
        self, chat_service, documents, tenant_id, monkeypatch
    ):
        documents.replace_documents(tenant_id, SAMPLE_DOCUMENT, "acme.txt")
        real_search = documents.search

        def slow_search(*args, **kwargs):
            time.sleep(0.5)
            return real_search(*args, **kwargs)

        monkeypatch.setattr(documents, "search", slow_search)

        done = asyncio.Event()
        gaps = []

        async def heartbeat():
            last = time.monotonic()
            while not done.is_set():
                await asyncio.sleep(0.02)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        ticker = asyncio.create_task(heartbeat())
        try:
            result = await chat_service.handle_turn(tenant_id, "web-1", QUESTION)
        finally:
            done.set()
            await ticker

        assert result.action == DialogueAction.ANSWER
        assert gaps
        assert max(gaps) < 0.3
