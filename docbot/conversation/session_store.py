"""
Dialogue session storage.

Sessions are keyed by (bot ID, session ID), created lazily on first read
and evicted after a period of inactivity. The store sits behind the
``SessionStore`` interface so an external cache can replace the
in-memory implementation.
"""

import asyncio
import copy
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class DialogueState(str, Enum):
    """Where a session sits in the booking dialogue."""
    IDLE = "idle"
    BOOKING_NAME = "booking_name"
    BOOKING_PHONE = "booking_phone"
    BOOKING_DATE = "booking_date"
    BOOKING_TIME = "booking_time"
    BOOKING_CONFIRM = "booking_confirm"
    CHECK_PHONE = "check_phone"
    CANCEL_PHONE = "cancel_phone"
    UPDATE_PHONE = "update_phone"
    UPDATE_DETAILS = "update_details"

    @property
    def is_active(self) -> bool:
        return self is not DialogueState.IDLE


@dataclass
class DialogueSession:
    """Mutable per-visitor dialogue state."""
    state: DialogueState = DialogueState.IDLE
    data: dict[str, Any] = field(default_factory=dict)
    last_phone: Optional[str] = None
    update_phone: Optional[str] = None
    last_activity: float = 0.0

    def copy(self) -> "DialogueSession":
        return copy.deepcopy(self)


SessionKey = tuple[str, str]


class SessionStore(ABC):
    """Storage interface for dialogue sessions."""

    @abstractmethod
    def get(self, tenant_id: str, session_id: str) -> DialogueSession:
        """Return the session, creating an idle one if absent. Touches activity."""

    @abstractmethod
    def put(self, tenant_id: str, session_id: str, session: DialogueSession) -> None:
        """Replace the stored session."""

    @abstractmethod
    def reset(self, tenant_id: str, session_id: str) -> None:
        """Forget a session entirely."""

    @abstractmethod
    def sweep_expired(self) -> int:
        """Evict idle sessions and return how many were removed."""


class InMemorySessionStore(SessionStore):
    """Process-local session store with inactivity expiry."""

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[SessionKey, DialogueSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, tenant_id: str, session_id: str) -> DialogueSession:
        key = (tenant_id, session_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = DialogueSession()
                self._sessions[key] = session
            session.last_activity = self._clock()
            return session.copy()

    def put(self, tenant_id: str, session_id: str, session: DialogueSession) -> None:
        session.last_activity = self._clock()
        with self._lock:
            self._sessions[(tenant_id, session_id)] = session.copy()

    def reset(self, tenant_id: str, session_id: str) -> None:
        with self._lock:
            self._sessions.pop((tenant_id, session_id), None)

    def sweep_expired(self) -> int:
        cutoff = self._clock() - self._ttl
        with self._lock:
            expired = [k for k, s in self._sessions.items() if s.last_activity < cutoff]
            for key in expired:
                del self._sessions[key]
        if expired:
            logger.info("Evicted %d idle sessions", len(expired))
        return len(expired)


async def sweep_forever(store: SessionStore, interval_sec: float) -> None:
    """Evict expired sessions every ``interval_sec`` until cancelled."""
    while True:
        await asyncio.sleep(interval_sec)
        try:
            store.sweep_expired()
        except Exception:
            logger.exception("Session sweep failed")
