"""
Answer generation and text extraction collaborators.

``AnswerGenerator`` turns a question plus retrieved passages into a reply.
The OpenAI implementation calls a chat-completion model; the context-echo
implementation answers offline with the best passage and backs the
console demo and tests.

Failures surface as ``UpstreamError`` so the chat service can apologize
without knowing which provider is behind the interface.
"""

import logging
from typing import Optional, Protocol

import openai

from docbot.config import ModelConfig, settings
from docbot.errors import UpstreamError
from docbot.prompts.prompt_templates import build_answer_messages
from docbot.schemas.conversation_schema import ChatMessage
from docbot.schemas.retrieval_schema import SearchHit

logger = logging.getLogger(__name__)

ECHO_MAX_CHARS = 500


class AnswerGenerator(Protocol):
    async def generate(
        self,
        question: str,
        hits: list[SearchHit],
        history: list[ChatMessage],
        language: str = "en",
        bot_name: Optional[str] = None,
    ) -> str:
        ...


class TextExtractor(Protocol):
    def extract(self, data: bytes, filename: str) -> str:
        ...


class OpenAIAnswerGenerator:
    """Chat-completion answers grounded in the retrieved passages."""

    def __init__(
        self,
        config: Optional[ModelConfig] = None,
        client: Optional[openai.AsyncOpenAI] = None,
    ) -> None:
        self._config = config or settings.model
        if client is None:
            if not self._config.api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = openai.AsyncOpenAI(api_key=self._config.api_key, max_retries=0)
        self._client = client

    async def generate(
        self,
        question: str,
        hits: list[SearchHit],
        history: list[ChatMessage],
        language: str = "en",
        bot_name: Optional[str] = None,
    ) -> str:
        messages = build_answer_messages(question, hits, history, language, bot_name)
        logger.debug(
            "Calling %s with %d messages (%d passages)",
            self._config.llm_model, len(messages), len(hits),
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._config.llm_model,
                messages=messages,
                temperature=self._config.llm_temperature,
                max_tokens=self._config.max_tokens,
            )
        except (openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError) as e:
            raise UpstreamError(f"Answer generation unavailable: {e}", retryable=True, cause=e) from e
        except openai.OpenAIError as e:
            raise UpstreamError(f"Answer generation failed: {e}", cause=e) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamError("Answer generation returned an empty reply")
        return content.strip()


class ContextEchoGenerator:
    """Offline generator that replies with the best-matching passage."""

    def __init__(self, max_chars: int = ECHO_MAX_CHARS) -> None:
        self._max_chars = max_chars

    async def generate(
        self,
        question: str,
        hits: list[SearchHit],
        history: list[ChatMessage],
        language: str = "en",
        bot_name: Optional[str] = None,
    ) -> str:
        if not hits:
            raise UpstreamError("No passages to answer from")
        passage = " ".join(hits[0].chunk_text.split())
        if len(passage) > self._max_chars:
            passage = passage[: self._max_chars].rsplit(" ", 1)[0] + "..."
        return passage


class PlainTextExtractor:
    """Decodes uploaded bytes as UTF-8 text."""

    def extract(self, data: bytes, filename: str) -> str:
        text = data.decode("utf-8", errors="replace")
        logger.debug("Extracted %d characters from %s", len(text), filename)
        return text
