"""
Turn orchestration: dialogue first, document retrieval second.

A turn goes to the booking dialogue. When the dialogue defers, the
tenant's document chunks are searched and the best passages go to the
answer generator together with the recent conversation window.

Outcomes:
    dialogue reply    saved to history, returned with its action
    empty corpus      "please upload a document" reply, generator not called
    generator failure apology with action ERROR, nothing saved
    answer            saved to history, returned with its sources
"""

import asyncio
from typing import Optional

from docbot.config import DialogueConfig, ModelConfig, RetrievalConfig, settings
from docbot.conversation.replies import render
from docbot.conversation.state_machine import DialogueManager
from docbot.errors import UpstreamError
from docbot.generation.answer_generator import AnswerGenerator
from docbot.logging_context import get_session_logger, set_session_id
from docbot.schemas.conversation_schema import ChatMessage, DialogueAction, TurnResult
from docbot.schemas.retrieval_schema import SearchHit
from docbot.storage.conversations import ConversationLog
from docbot.storage.documents import DocumentStore

logger = get_session_logger(__name__)


class ChatService:
    """Handles chat turns and conversation history for every bot."""

    def __init__(
        self,
        dialogue: DialogueManager,
        documents: DocumentStore,
        conversations: ConversationLog,
        generator: AnswerGenerator,
        retrieval: Optional[RetrievalConfig] = None,
        model: Optional[ModelConfig] = None,
        dialogue_config: Optional[DialogueConfig] = None,
    ) -> None:
        self._dialogue = dialogue
        self._documents = documents
        self._conversations = conversations
        self._generator = generator
        self._retrieval = retrieval or settings.retrieval
        self._model = model or settings.model
        self._dialogue_config = dialogue_config or settings.dialogue

    async def handle_turn(
        self,
        tenant_id: str,
        session_id: str,
        message: str,
        language: Optional[str] = None,
        bot_name: Optional[str] = None,
    ) -> TurnResult:
        """
        Answer one user message.

        Args:
            tenant_id: Bot the visitor is talking to.
            session_id: Opaque visitor session identifier.
            message: The user's message.
            language: "en" or "hi"; defaults to the configured language.
            bot_name: Display name used in the answer prompt.

        Returns:
            TurnResult with reply text, action and any sources or booking.
        """
        set_session_id(session_id)
        language = language or self._dialogue_config.default_language

        # Store access is synchronous; keep it off the event loop.
        dialogue_reply = await asyncio.to_thread(
            self._dialogue.handle, tenant_id, session_id, message, language
        )
        if dialogue_reply is not None:
            await asyncio.to_thread(
                self._conversations.append_turn,
                tenant_id, session_id, message, dialogue_reply.reply,
            )
            return TurnResult(
                reply=dialogue_reply.reply,
                action=dialogue_reply.action,
                booking=dialogue_reply.booking,
                booking_id=dialogue_reply.booking_id,
            )

        hits = await asyncio.to_thread(
            self._documents.search, tenant_id, message, self._retrieval.top_k
        )
        if not hits:
            reply = render("no_documents", language)
            await asyncio.to_thread(
                self._conversations.append_turn, tenant_id, session_id, message, reply
            )
            return TurnResult(reply=reply, action=DialogueAction.NO_DOCUMENTS)

        history = await asyncio.to_thread(
            self._conversations.recent,
            tenant_id, session_id, self._dialogue_config.history_window,
        )
        try:
            answer = await self._generate(message, hits, history, language, bot_name)
        except UpstreamError:
            logger.exception("Answer generation failed for bot %s", tenant_id)
            return TurnResult(reply=render("upstream_error", language), action=DialogueAction.ERROR)

        await asyncio.to_thread(
            self._conversations.append_turn, tenant_id, session_id, message, answer
        )
        return TurnResult(reply=answer, action=DialogueAction.ANSWER, sources=hits)

    async def _generate(
        self,
        message: str,
        hits: list[SearchHit],
        history: list[ChatMessage],
        language: str,
        bot_name: Optional[str],
    ) -> str:
        """Call the generator with a timeout, retrying timeouts."""
        attempts = self._model.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(
                    self._generator.generate(message, hits, history, language, bot_name),
                    timeout=self._model.timeout_sec,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Answer generation timed out after %.1fs (attempt %d/%d)",
                    self._model.timeout_sec, attempt, attempts,
                )
            except UpstreamError as e:
                if not e.retryable or attempt == attempts:
                    raise
                logger.warning("Retryable generation failure (attempt %d/%d): %s", attempt, attempts, e)
        raise UpstreamError(
            f"Answer generation timed out after {attempts} attempts", retryable=True
        )

    def get_history(
        self, tenant_id: str, session_id: str, limit: Optional[int] = None
    ) -> list[ChatMessage]:
        if limit is None:
            limit = self._dialogue_config.history_list_limit
        return self._conversations.recent(tenant_id, session_id, limit)

    def clear_history(self, tenant_id: str, session_id: str, reset_dialogue: bool = False) -> int:
        """Delete the stored messages of a session.

        Dialogue state is kept unless ``reset_dialogue`` is set, in which
        case any half-finished booking flow is dropped as well.
        """
        removed = self._conversations.clear(tenant_id, session_id)
        if reset_dialogue:
            self._dialogue.reset(tenant_id, session_id)
        return removed
