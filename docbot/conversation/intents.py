"""
Rule-based intent classification.

Idle sessions are classified by an ordered rule table where the first
matching rule wins. Sessions in the middle of a flow only distinguish a
bare yes, a bare no, and anything else (slot data).

Keyword lists carry Hindi equivalents. Word boundaries treat Devanagari
letters and vowel signs as word characters.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional

from docbot.conversation.entities import Entities, extract_entities
from docbot.conversation.session_store import DialogueState

logger = logging.getLogger(__name__)

_WORD_CHARS = r"\w\u0900-\u097F"
PHONE_ONLY_MAX_LENGTH = 30


def _keywords(*words: str) -> re.Pattern:
    alternation = "|".join(words)
    return re.compile(
        rf"(?<![{_WORD_CHARS}])(?:{alternation})(?![{_WORD_CHARS}])", re.IGNORECASE
    )


class IntentLabel(str, Enum):
    GREETING = "GREETING"
    CHECK_BOOKING = "CHECK_BOOKING"
    CANCEL_BOOKING = "CANCEL_BOOKING"
    UPDATE_BOOKING = "UPDATE_BOOKING"
    BOOK_APPOINTMENT = "BOOK_APPOINTMENT"
    CONTACT_INFO = "CONTACT_INFO"
    GENERAL_QUESTION = "GENERAL_QUESTION"
    CONFIRM_YES = "CONFIRM_YES"
    CONFIRM_NO = "CONFIRM_NO"
    PROVIDE_DATA = "PROVIDE_DATA"


GREETING = re.compile(r"^(hi|hello|hey|hii+|namaste|नमस्ते|hola)[\s!.,]*$", re.IGNORECASE)
AFFIRMATIVE = re.compile(r"^(yes|yeah|yep|ok|okay|sure|confirm|done|हां|हाँ|जी|ठीक)$", re.IGNORECASE)
NEGATIVE = re.compile(r"^(no|nope|cancel|stop|नहीं|रद्द|बंद)$", re.IGNORECASE)

CHECK_WORDS = _keywords(
    "check", "status", "find", "view", "show", "see", "get", "where", "मेरी", "देखें", "देखो",
)
BOOKING_NOUNS = _keywords("bookings?", "appointments?", "बुकिंग", "अपॉइंटमेंट")
CANCEL_WORDS = _keywords("cancel", "delete", "remove", "कैंसिल", "रद्द", "हटाओ")
UPDATE_WORDS = _keywords(
    "update", "change", "reschedule", "modify", "shift", "move", "postpone", "prepone",
    "बदलो", "बदलें", "अपडेट",
)
SCHEDULE_TO = _keywords(r"(?:date|time|तारीख|समय)\s*(?:to|ko|को)")
BOOK_WORDS = _keywords(
    "book", "schedule", "appointment", "meeting", "consultation", "बुक", "अपॉइंटमेंट", "मीटिंग",
)
BOOK_BLOCKERS = _keywords("check", "status", "cancel", "update", "change", "find", "view", "show")
CONTACT_WORDS = _keywords(
    "contact", "call me", "phone", "email", "talk to", "speak to", "reach", "number",
    "संपर्क", "फोन", "ईमेल",
)


@dataclass(frozen=True)
class IntentResult:
    """Classification outcome. Confidence is informational only."""
    intent: IntentLabel
    confidence: float
    entities: Entities
    rule: Optional[str] = None


@dataclass(frozen=True)
class IntentRule:
    """An idle-state rule: ``predicate(lowered_text, entities)``."""
    name: str
    predicate: Callable[[str, Entities], bool]
    intent: IntentLabel
    confidence: float


RULES: list[IntentRule] = [
    IntentRule(
        "greeting",
        lambda text, _: bool(GREETING.match(text)),
        IntentLabel.GREETING, 0.95,
    ),
    IntentRule(
        "check_booking",
        lambda text, _: bool(CHECK_WORDS.search(text) and BOOKING_NOUNS.search(text)),
        IntentLabel.CHECK_BOOKING, 0.9,
    ),
    IntentRule(
        "cancel_booking",
        lambda text, _: bool(CANCEL_WORDS.search(text)),
        IntentLabel.CANCEL_BOOKING, 0.9,
    ),
    IntentRule(
        "update_booking",
        lambda text, _: bool(UPDATE_WORDS.search(text) or SCHEDULE_TO.search(text)),
        IntentLabel.UPDATE_BOOKING, 0.85,
    ),
    IntentRule(
        "book_appointment",
        lambda text, _: bool(BOOK_WORDS.search(text) and not BOOK_BLOCKERS.search(text)),
        IntentLabel.BOOK_APPOINTMENT, 0.9,
    ),
    IntentRule(
        "contact_info",
        lambda text, _: bool(CONTACT_WORDS.search(text)),
        IntentLabel.CONTACT_INFO, 0.85,
    ),
    IntentRule(
        "phone_only",
        lambda text, entities: bool(entities.phone) and len(text) < PHONE_ONLY_MAX_LENGTH,
        IntentLabel.CHECK_BOOKING, 0.7,
    ),
]


def _strip_punctuation(text: str) -> str:
    return text.rstrip(" .!?,।")


def classify_intent(
    message: str,
    state: DialogueState = DialogueState.IDLE,
    today: Optional[date] = None,
) -> IntentResult:
    """
    Classify a message given the session's dialogue state.

    Args:
        message: Raw user message.
        state: Current dialogue state of the session.
        today: Reference date for relative date extraction.

    Returns:
        IntentResult with the extracted entities attached.
    """
    entities = extract_entities(message, today)
    text = message.strip().lower()

    if DialogueState(state).is_active:
        bare = _strip_punctuation(text)
        if AFFIRMATIVE.match(bare):
            return IntentResult(IntentLabel.CONFIRM_YES, 0.95, entities, "affirmative")
        if NEGATIVE.match(bare):
            return IntentResult(IntentLabel.CONFIRM_NO, 0.95, entities, "negative")
        return IntentResult(IntentLabel.PROVIDE_DATA, 0.8, entities, "slot_data")

    for rule in RULES:
        if rule.predicate(text, entities):
            logger.debug("Intent rule '%s' matched: %s", rule.name, rule.intent.value)
            return IntentResult(rule.intent, rule.confidence, entities, rule.name)

    return IntentResult(IntentLabel.GENERAL_QUESTION, 0.6, entities, None)
