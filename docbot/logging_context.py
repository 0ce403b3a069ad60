"""Session ID logging context for tracing chat turns across modules.

Provides a session-aware logger that attaches the chat session ID to every
log record, making it easy to follow one visitor's conversation through
intent classification, the booking dialogue and answer generation.

Usage:
    from docbot.logging_context import get_session_logger, set_session_id

    set_session_id("web-3f9a")
    logger = get_session_logger(__name__)
    logger.info("Processing turn")  # → [web-3f9a] Processing turn
"""

import logging
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="-")


def set_session_id(session_id: str) -> None:
    """Set the session ID for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current session ID."""
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def install_session_filter() -> None:
    """Attach a SessionIdFilter to every root handler.

    Handler-level filters see records from all loggers, so the root
    format string can safely reference ``%(session_id)s``.
    """
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
