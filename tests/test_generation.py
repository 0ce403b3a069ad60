"""Tests for prompt construction and answer generators."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from docbot.config import ModelConfig
from docbot.errors import UpstreamError
from docbot.generation.answer_generator import (
    ContextEchoGenerator,
    OpenAIAnswerGenerator,
    PlainTextExtractor,
)
from docbot.prompts.prompt_templates import build_answer_messages, build_system_prompt
from docbot.schemas.conversation_schema import ChatMessage, MessageRole
from docbot.schemas.retrieval_schema import SearchHit

HITS = [
    SearchHit(chunk_text="Modular kitchens take three weeks.", source_file="a.txt", score=0.8),
    SearchHit(chunk_text="Wardrobes take two weeks.", source_file="a.txt", score=0.4),
]


class FakeCompletions:
    def __init__(self, content="Three weeks.", error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestPromptTemplates:
    def test_system_prompt_contains_passages(self):
        prompt = build_system_prompt(HITS, "en", "Acme Interiors")
        assert "Acme Interiors" in prompt
        assert "COMPANY DOCUMENTS" in prompt
        assert "Modular kitchens take three weeks." in prompt
        assert prompt.index("Modular") < prompt.index("Wardrobes")
        assert prompt.endswith("Respond in English")

    def test_hindi_instruction(self):
        assert "Hindi" in build_system_prompt(HITS, "hi")

    def test_unknown_language_uses_english(self):
        assert build_system_prompt(HITS, "fr").endswith("Respond in English")

    def test_message_order(self):
        history = [
            ChatMessage(role=MessageRole.USER, content="hello"),
            ChatMessage(role=MessageRole.ASSISTANT, content="Hi there"),
        ]
        messages = build_answer_messages("How long?", HITS, history)
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[-1]["content"] == "How long?"


class TestOpenAIAnswerGenerator:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            OpenAIAnswerGenerator(ModelConfig(api_key=""))

    @pytest.mark.asyncio
    async def test_generates_answer(self):
        completions = FakeCompletions(content="  Three weeks.  ")
        config = ModelConfig(llm_model="gpt-4o-mini", llm_temperature=0.2, max_tokens=300)
        generator = OpenAIAnswerGenerator(config, client=_client(completions))

        answer = await generator.generate("How long?", HITS, [], "en", "Acme")

        assert answer == "Three weeks."
        assert completions.kwargs["model"] == "gpt-4o-mini"
        assert completions.kwargs["temperature"] == 0.2
        assert completions.kwargs["max_tokens"] == 300
        assert completions.kwargs["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_error(self):
        generator = OpenAIAnswerGenerator(ModelConfig(), client=_client(FakeCompletions(content="")))
        with pytest.raises(UpstreamError, match="empty"):
            await generator.generate("How long?", HITS, [])

    @pytest.mark.asyncio
    async def test_connection_error_is_retryable(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.APIConnectionError(request=request)
        generator = OpenAIAnswerGenerator(ModelConfig(), client=_client(FakeCompletions(error=error)))

        with pytest.raises(UpstreamError) as excinfo:
            await generator.generate("How long?", HITS, [])
        assert excinfo.value.retryable
        assert excinfo.value.cause is error

    @pytest.mark.asyncio
    async def test_other_api_errors_are_not_retryable(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(400, request=request)
        error = openai.BadRequestError("bad request", response=response, body=None)
        generator = OpenAIAnswerGenerator(ModelConfig(), client=_client(FakeCompletions(error=error)))

        with pytest.raises(UpstreamError) as excinfo:
            await generator.generate("How long?", HITS, [])
        assert not excinfo.value.retryable


class TestContextEchoGenerator:
    @pytest.mark.asyncio
    async def test_returns_best_passage(self):
        answer = await ContextEchoGenerator().generate("How long?", HITS, [])
        assert answer == "Modular kitchens take three weeks."

    @pytest.mark.asyncio
    async def test_normalizes_whitespace_and_truncates(self):
        hit = SearchHit(chunk_text="word \n\n " * 50, source_file="a.txt", score=1.0)
        answer = await ContextEchoGenerator(max_chars=40).generate("q", [hit], [])
        assert answer.endswith("...")
        assert "\n" not in answer
        assert len(answer) <= 43

    @pytest.mark.asyncio
    async def test_no_hits(self):
        with pytest.raises(UpstreamError):
            await ContextEchoGenerator().generate("q", [], [])


class TestPlainTextExtractor:
    def test_decodes_utf8(self):
        assert PlainTextExtractor().extract("नमस्ते kitchen".encode("utf-8"), "a.txt") == "नमस्ते kitchen"

    def test_invalid_bytes_are_replaced(self):
        assert "�" in PlainTextExtractor().extract(b"ok \xff ok", "a.bin")
