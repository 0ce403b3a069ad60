"""Chat message construction for answer generation."""

from typing import Optional

from docbot.prompts.system_prompts import (
    ASSISTANT_PROMPT,
    DOCUMENTS_HEADER,
    LANGUAGE_INSTRUCTIONS,
)
from docbot.schemas.conversation_schema import ChatMessage
from docbot.schemas.retrieval_schema import SearchHit


def build_system_prompt(
    hits: list[SearchHit], language: str = "en", bot_name: Optional[str] = None
) -> str:
    """Assemble the system prompt with retrieved passages and language rule."""
    parts = [ASSISTANT_PROMPT.format(bot_name=bot_name or "this organization")]
    if hits:
        parts.append(DOCUMENTS_HEADER + "\n\n".join(hit.chunk_text for hit in hits))
    parts.append(LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"]))
    return "\n".join(parts)


def build_answer_messages(
    question: str,
    hits: list[SearchHit],
    history: list[ChatMessage],
    language: str = "en",
    bot_name: Optional[str] = None,
) -> list[dict[str, str]]:
    """Build the chat-completion message list: system, history, question."""
    messages = [{"role": "system", "content": build_system_prompt(hits, language, bot_name)}]
    messages.extend({"role": m.role.value, "content": m.content} for m in history)
    messages.append({"role": "user", "content": question})
    return messages
