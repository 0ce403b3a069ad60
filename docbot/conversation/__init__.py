from docbot.conversation.entities import Entities, extract_entities
from docbot.conversation.intents import IntentLabel, IntentResult, classify_intent
from docbot.conversation.session_store import (
    DialogueSession,
    DialogueState,
    InMemorySessionStore,
    SessionStore,
    sweep_forever,
)
from docbot.conversation.state_machine import DialogueManager, DialogueReply

__all__ = [
    "DialogueManager",
    "DialogueReply",
    "DialogueSession",
    "DialogueState",
    "Entities",
    "InMemorySessionStore",
    "IntentLabel",
    "IntentResult",
    "SessionStore",
    "classify_intent",
    "extract_entities",
    "sweep_forever",
]
