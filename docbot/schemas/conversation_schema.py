"""Chat turn and conversation history schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from docbot.schemas.booking_schema import BookingRecord
from docbot.schemas.retrieval_schema import SearchHit


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class DialogueAction(str, Enum):
    """What a turn did, reported to clients alongside the reply text."""
    GREETING = "GREETING"
    CONTACT = "CONTACT"
    ASK_NAME = "ASK_NAME"
    ASK_PHONE = "ASK_PHONE"
    ASK_DATE = "ASK_DATE"
    ASK_TIME = "ASK_TIME"
    ASK_DETAILS = "ASK_DETAILS"
    RETRY = "RETRY"
    CONFIRM = "CONFIRM"
    CREATED = "CREATED"
    CANCELLED = "CANCELLED"
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    UPDATED = "UPDATED"
    ANSWER = "ANSWER"
    NO_DOCUMENTS = "NO_DOCUMENTS"
    ERROR = "ERROR"


class ChatMessage(BaseModel):
    """A stored conversation message."""

    model_config = ConfigDict(from_attributes=True)

    role: MessageRole
    content: str
    created_at: Optional[datetime] = None


class TurnResult(BaseModel):
    """Everything a client needs to render one chat turn."""
    reply: str
    action: DialogueAction
    sources: list[SearchHit] = Field(default_factory=list)
    booking: Optional[BookingRecord] = None
    booking_id: Optional[str] = None
