"""
Finite state machine driving the booking dialogue.

Transitions are explicit: every active state has exactly one handler, and
every idle intent that the dialogue owns has exactly one handler. An idle
message with no handler (a general question) is left to retrieval.

The manager works on a copy of the session and writes it back only after
the turn completes, so a failure while persisting a booking leaves the
session exactly as it was.

Usage:
    manager = DialogueManager(bookings=ledger, sessions=InMemorySessionStore())
    reply = manager.handle(bot_id, "web-1", "book appointment")
    assert reply.action == DialogueAction.ASK_NAME
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from docbot.config import DialogueConfig, settings
from docbot.conversation.entities import Entities
from docbot.conversation.intents import IntentLabel, IntentResult, classify_intent
from docbot.conversation.replies import render
from docbot.conversation.session_store import DialogueSession, DialogueState, SessionStore
from docbot.logging_context import get_session_logger
from docbot.schemas.booking_schema import BookingDraft, BookingRecord
from docbot.schemas.conversation_schema import DialogueAction
from docbot.storage.bookings import BookingLedger
from docbot.utils import is_valid_mobile, normalize_phone, short_ref

logger = get_session_logger(__name__)

_MENTIONS_DATE = re.compile(r"\b(?:date|day)\b|तारीख", re.IGNORECASE)
_MENTIONS_TIME = re.compile(r"\btime\b|समय|बजे", re.IGNORECASE)

PHONE_STATES = (
    DialogueState.CHECK_PHONE,
    DialogueState.CANCEL_PHONE,
    DialogueState.UPDATE_PHONE,
)


@dataclass
class DialogueReply:
    """A reply produced by the dialogue rather than by retrieval."""
    reply: str
    action: DialogueAction
    booking: Optional[BookingRecord] = None
    booking_id: Optional[str] = None


@dataclass
class _Turn:
    tenant_id: str
    session: DialogueSession
    message: str
    intent: IntentResult
    language: str

    @property
    def entities(self) -> Entities:
        return self.intent.entities


def schedule_changes(message: str, entities: Entities) -> tuple[Optional[str], Optional[str]]:
    """Pick the date and time a reschedule request asks for.

    A bare number parses as both a day and an hour, so a message that
    names only "date" keeps only the date and one that names only "time"
    keeps only the time.
    """
    new_date, new_time = entities.date, entities.time
    mentions_date = bool(_MENTIONS_DATE.search(message))
    mentions_time = bool(_MENTIONS_TIME.search(message))
    if mentions_date and not mentions_time:
        new_time = None
    elif mentions_time and not mentions_date:
        new_date = None
    return new_date, new_time


class DialogueManager:
    """
    Multi-turn booking dialogue over a session store and booking ledger.

    ``handle`` returns a DialogueReply when the dialogue owns the turn and
    None when the message should fall through to document retrieval.
    """

    def __init__(
        self,
        bookings: BookingLedger,
        sessions: SessionStore,
        config: Optional[DialogueConfig] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._bookings = bookings
        self._sessions = sessions
        self._config = config or settings.dialogue
        self._today = today

        self._state_handlers: dict[DialogueState, Callable[[_Turn], DialogueReply]] = {
            DialogueState.BOOKING_NAME: self._collect_name,
            DialogueState.BOOKING_PHONE: self._collect_phone,
            DialogueState.BOOKING_DATE: self._collect_date,
            DialogueState.BOOKING_TIME: self._collect_time,
            DialogueState.BOOKING_CONFIRM: self._confirm_booking,
            DialogueState.CHECK_PHONE: self._check_with_phone,
            DialogueState.CANCEL_PHONE: self._cancel_with_phone,
            DialogueState.UPDATE_PHONE: self._update_with_phone,
            DialogueState.UPDATE_DETAILS: self._update_details,
        }
        self._intent_handlers: dict[IntentLabel, Callable[[_Turn], DialogueReply]] = {
            IntentLabel.GREETING: self._greet,
            IntentLabel.CONTACT_INFO: self._contact,
            IntentLabel.BOOK_APPOINTMENT: self._start_booking,
            IntentLabel.CHECK_BOOKING: self._start_check,
            IntentLabel.CANCEL_BOOKING: self._start_cancel,
            IntentLabel.UPDATE_BOOKING: self._start_update,
        }

    def handle(
        self, tenant_id: str, session_id: str, message: str, language: str = "en"
    ) -> Optional[DialogueReply]:
        """
        Run one dialogue turn.

        Args:
            tenant_id: Bot the conversation belongs to.
            session_id: Visitor session within the bot.
            message: Raw user message.
            language: Reply language code ("en" or "hi").

        Returns:
            The dialogue's reply, or None to defer to retrieval.
        """
        session = self._sessions.get(tenant_id, session_id)
        intent = classify_intent(message, session.state, self._today())
        logger.info(
            "Dialogue turn: state=%s intent=%s (%.2f)",
            session.state.value, intent.intent.value, intent.confidence,
        )

        if session.state.is_active:
            handler = self._state_handlers[session.state]
        else:
            handler = self._intent_handlers.get(intent.intent)
            if handler is None:
                return None

        previous_state = session.state
        turn = _Turn(tenant_id, session, message, intent, language)
        reply = handler(turn)
        self._sessions.put(tenant_id, session_id, session)

        if session.state != previous_state:
            logger.debug(
                "Dialogue transition: %s -> %s", previous_state.value, session.state.value
            )
        return reply

    def reset(self, tenant_id: str, session_id: str) -> None:
        """Drop any in-progress flow for the session."""
        self._sessions.reset(tenant_id, session_id)
        logger.info("Dialogue state reset for bot %s", tenant_id)

    def _say(self, turn: _Turn, key: str, action: DialogueAction, **values) -> DialogueReply:
        return DialogueReply(render(key, turn.language, **values), action)

    def _phone_from(self, turn: _Turn) -> Optional[str]:
        if turn.entities.phone:
            return turn.entities.phone
        candidate = normalize_phone(turn.message)
        return candidate if is_valid_mobile(candidate) else None

    def _abort(self, turn: _Turn) -> DialogueReply:
        turn.session.state = DialogueState.IDLE
        turn.session.update_phone = None
        return self._say(turn, "flow_aborted", DialogueAction.CANCELLED)

    # --- Idle intents ---

    def _greet(self, turn: _Turn) -> DialogueReply:
        return self._say(turn, "greeting", DialogueAction.GREETING)

    def _contact(self, turn: _Turn) -> DialogueReply:
        return self._say(
            turn, "contact", DialogueAction.CONTACT,
            phone=self._config.contact_phone, email=self._config.contact_email,
        )

    def _start_booking(self, turn: _Turn) -> DialogueReply:
        turn.session.data = {}
        turn.session.state = DialogueState.BOOKING_NAME
        return self._say(turn, "ask_name", DialogueAction.ASK_NAME)

    def _start_check(self, turn: _Turn) -> DialogueReply:
        if turn.entities.phone:
            return self._lookup(turn, turn.entities.phone)
        turn.session.state = DialogueState.CHECK_PHONE
        return self._say(turn, "check_ask_phone", DialogueAction.ASK_PHONE)

    def _start_cancel(self, turn: _Turn) -> DialogueReply:
        if turn.entities.phone:
            return self._cancel(turn, turn.entities.phone)
        turn.session.state = DialogueState.CANCEL_PHONE
        return self._say(turn, "cancel_ask_phone", DialogueAction.ASK_PHONE)

    def _start_update(self, turn: _Turn) -> DialogueReply:
        phone = turn.entities.phone or turn.session.last_phone
        if not phone:
            turn.session.state = DialogueState.UPDATE_PHONE
            return self._say(turn, "update_ask_phone", DialogueAction.ASK_PHONE)

        new_date, new_time = schedule_changes(turn.message, turn.entities)
        if new_date or new_time:
            return self._apply_update(turn, phone, new_date, new_time)

        if self._bookings.latest_for_phone(turn.tenant_id, phone) is None:
            return self._say(turn, "no_booking_for_phone", DialogueAction.NOT_FOUND, phone=phone)
        turn.session.update_phone = phone
        turn.session.state = DialogueState.UPDATE_DETAILS
        return self._say(turn, "ask_new_schedule", DialogueAction.ASK_DETAILS)

    # --- Booking slot filling ---

    def _capture_email(self, turn: _Turn) -> None:
        if turn.entities.email:
            turn.session.data["email"] = turn.entities.email

    def _collect_name(self, turn: _Turn) -> DialogueReply:
        self._capture_email(turn)
        name = turn.entities.name or turn.message.strip()
        if not name:
            return self._say(turn, "ask_name", DialogueAction.RETRY)
        turn.session.data["full_name"] = name
        turn.session.state = DialogueState.BOOKING_PHONE
        return self._say(turn, "ask_phone", DialogueAction.ASK_PHONE, name=name)

    def _collect_phone(self, turn: _Turn) -> DialogueReply:
        self._capture_email(turn)
        phone = self._phone_from(turn)
        if phone is None:
            return self._say(turn, "invalid_phone", DialogueAction.RETRY)
        turn.session.data["phone"] = phone
        turn.session.state = DialogueState.BOOKING_DATE
        return self._say(turn, "ask_date", DialogueAction.ASK_DATE)

    def _collect_date(self, turn: _Turn) -> DialogueReply:
        self._capture_email(turn)
        if not turn.entities.date:
            return self._say(turn, "invalid_date", DialogueAction.RETRY)
        turn.session.data["preferred_date"] = turn.entities.date
        turn.session.state = DialogueState.BOOKING_TIME
        return self._say(turn, "ask_time", DialogueAction.ASK_TIME)

    def _collect_time(self, turn: _Turn) -> DialogueReply:
        self._capture_email(turn)
        if not turn.entities.time:
            return self._say(turn, "invalid_time", DialogueAction.RETRY)
        data = turn.session.data
        data["preferred_time"] = turn.entities.time
        data.setdefault("service", self._config.default_service)
        turn.session.state = DialogueState.BOOKING_CONFIRM
        return self._say(
            turn, "confirm_summary", DialogueAction.CONFIRM,
            name=data["full_name"], phone=data["phone"], date=data["preferred_date"],
            time=data["preferred_time"], service=data["service"],
        )

    def _confirm_booking(self, turn: _Turn) -> DialogueReply:
        self._capture_email(turn)
        session = turn.session
        if turn.intent.intent != IntentLabel.CONFIRM_YES:
            session.data = {}
            session.state = DialogueState.IDLE
            return self._say(turn, "booking_discarded", DialogueAction.CANCELLED)

        record = self._bookings.create_booking(turn.tenant_id, BookingDraft(**session.data))
        session.data = {}
        session.state = DialogueState.IDLE
        session.last_phone = record.phone
        reply = self._say(
            turn, "booking_created", DialogueAction.CREATED,
            ref=short_ref(record.id, self._config.booking_ref_length),
        )
        reply.booking = record
        reply.booking_id = record.id
        return reply

    # --- Check / cancel / update ---

    def _collect_flow_phone(self, turn: _Turn) -> Optional[str]:
        phone = self._phone_from(turn)
        if phone is None:
            logger.debug("Rejected phone input in %s", turn.session.state.value)
        return phone

    def _check_with_phone(self, turn: _Turn) -> DialogueReply:
        if turn.intent.intent == IntentLabel.CONFIRM_NO:
            return self._abort(turn)
        phone = self._collect_flow_phone(turn)
        if phone is None:
            return self._say(turn, "invalid_phone", DialogueAction.RETRY)
        turn.session.state = DialogueState.IDLE
        return self._lookup(turn, phone)

    def _cancel_with_phone(self, turn: _Turn) -> DialogueReply:
        if turn.intent.intent == IntentLabel.CONFIRM_NO:
            return self._abort(turn)
        phone = self._collect_flow_phone(turn)
        if phone is None:
            return self._say(turn, "invalid_phone", DialogueAction.RETRY)
        turn.session.state = DialogueState.IDLE
        return self._cancel(turn, phone)

    def _update_with_phone(self, turn: _Turn) -> DialogueReply:
        if turn.intent.intent == IntentLabel.CONFIRM_NO:
            return self._abort(turn)
        phone = self._collect_flow_phone(turn)
        if phone is None:
            return self._say(turn, "invalid_phone", DialogueAction.RETRY)
        turn.session.update_phone = phone
        turn.session.state = DialogueState.UPDATE_DETAILS
        return self._say(turn, "ask_new_schedule", DialogueAction.ASK_DETAILS)

    def _update_details(self, turn: _Turn) -> DialogueReply:
        if turn.intent.intent == IntentLabel.CONFIRM_NO:
            return self._abort(turn)
        new_date, new_time = schedule_changes(turn.message, turn.entities)
        if not new_date and not new_time:
            return self._say(turn, "ask_new_schedule", DialogueAction.ASK_DETAILS)
        phone = turn.session.update_phone or turn.session.last_phone
        return self._apply_update(turn, phone, new_date, new_time)

    def _lookup(self, turn: _Turn, phone: str) -> DialogueReply:
        session = turn.session
        session.last_phone = phone
        record = self._bookings.latest_for_phone(turn.tenant_id, phone)
        if record is None:
            return self._say(turn, "no_booking_for_phone", DialogueAction.NOT_FOUND, phone=phone)
        reply = self._say(
            turn, "booking_found", DialogueAction.FOUND,
            name=record.full_name, date=record.preferred_date,
            time=record.preferred_time, status=record.status.value,
        )
        reply.booking = record
        reply.booking_id = record.id
        return reply

    def _cancel(self, turn: _Turn, phone: str) -> DialogueReply:
        turn.session.last_phone = phone
        count = self._bookings.cancel_by_phone(turn.tenant_id, phone)
        if count == 0:
            return self._say(turn, "nothing_to_cancel", DialogueAction.NOT_FOUND, phone=phone)
        return self._say(turn, "bookings_cancelled", DialogueAction.CANCELLED, count=count)

    def _apply_update(
        self,
        turn: _Turn,
        phone: Optional[str],
        new_date: Optional[str],
        new_time: Optional[str],
    ) -> DialogueReply:
        session = turn.session
        session.state = DialogueState.IDLE
        session.update_phone = None
        record = self._bookings.latest_for_phone(turn.tenant_id, phone) if phone else None
        if record is None:
            return self._say(turn, "no_booking_for_phone", DialogueAction.NOT_FOUND, phone=phone or "-")

        updated = self._bookings.reschedule_booking(record.id, new_date, new_time)
        session.last_phone = phone
        reply = self._say(
            turn, "booking_updated", DialogueAction.UPDATED,
            date=updated.preferred_date, time=updated.preferred_time,
        )
        reply.booking = updated
        reply.booking_id = updated.id
        return reply
