"""
Centralized configuration with environment variable overrides.

Retrieval parameters, session lifetimes, dialogue defaults and model
settings are all configurable here. Nothing is hardcoded in the
retrieval, dialogue or generation logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from docbot.logging_context import install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class RetrievalConfig:
    """Chunking and lexical search settings."""

    chunk_size: int = _safe_int("CHUNK_SIZE", "800")
    chunk_overlap: int = _safe_int("CHUNK_OVERLAP", "100")
    top_k: int = _safe_int("SEARCH_TOP_K", "5")
    min_document_chars: int = _safe_int("MIN_DOCUMENT_CHARS", "50")


@dataclass(frozen=True)
class SessionConfig:
    """In-memory dialogue session lifetime."""

    ttl_minutes: int = _safe_int("SESSION_TTL_MINUTES", "30")
    sweep_interval_minutes: int = _safe_int("SESSION_SWEEP_INTERVAL_MINUTES", "5")


@dataclass(frozen=True)
class DialogueConfig:
    """Canned values used by the booking dialogue."""

    default_service: str = os.getenv("DEFAULT_SERVICE", "Project Discussion")
    default_language: str = os.getenv("DEFAULT_LANGUAGE", "en")
    contact_phone: str = os.getenv("CONTACT_PHONE", "+91-9110176498 / +91-8800869961")
    contact_email: str = os.getenv("CONTACT_EMAIL", "contactus@example.com")
    history_window: int = _safe_int("HISTORY_WINDOW", "10")
    history_list_limit: int = _safe_int("HISTORY_LIST_LIMIT", "50")
    booking_ref_length: int = _safe_int("BOOKING_REF_LENGTH", "8")


@dataclass(frozen=True)
class ModelConfig:
    """Answer generation model settings."""

    api_key: str = os.getenv("OPENAI_API_KEY", "")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.7")
    max_tokens: int = _safe_int("LLM_MAX_TOKENS", "1000")
    timeout_sec: float = _safe_float("LLM_TIMEOUT_SEC", "30.0")
    max_attempts: int = _safe_int("LLM_MAX_ATTEMPTS", "2")


@dataclass(frozen=True)
class DatabaseConfig:
    """Relational store location."""

    url: str = os.getenv("DATABASE_URL", "sqlite:///./docbot.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "docbot")
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = _safe_int("PORT", "3001")


SUPPORTED_LANGUAGES = ("en", "hi")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.retrieval.chunk_size < 1:
        raise ValueError(f"CHUNK_SIZE must be >= 1, got {config.retrieval.chunk_size}")
    if not 0 <= config.retrieval.chunk_overlap < config.retrieval.chunk_size:
        raise ValueError(
            "CHUNK_OVERLAP must be >= 0 and smaller than CHUNK_SIZE, "
            f"got {config.retrieval.chunk_overlap}"
        )
    if config.retrieval.top_k < 1:
        raise ValueError(f"SEARCH_TOP_K must be >= 1, got {config.retrieval.top_k}")
    if config.retrieval.min_document_chars < 0:
        raise ValueError(
            f"MIN_DOCUMENT_CHARS must be >= 0, got {config.retrieval.min_document_chars}"
        )
    if config.sessions.ttl_minutes < 1:
        raise ValueError(
            f"SESSION_TTL_MINUTES must be >= 1, got {config.sessions.ttl_minutes}"
        )
    if config.sessions.sweep_interval_minutes < 1:
        raise ValueError(
            "SESSION_SWEEP_INTERVAL_MINUTES must be >= 1, "
            f"got {config.sessions.sweep_interval_minutes}"
        )
    if config.dialogue.default_language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"DEFAULT_LANGUAGE must be one of {SUPPORTED_LANGUAGES}, "
            f"got {config.dialogue.default_language!r}"
        )
    if config.dialogue.history_window < 0:
        raise ValueError(
            f"HISTORY_WINDOW must be >= 0, got {config.dialogue.history_window}"
        )
    if config.dialogue.history_list_limit < 1:
        raise ValueError(
            f"HISTORY_LIST_LIMIT must be >= 1, got {config.dialogue.history_list_limit}"
        )
    if config.dialogue.booking_ref_length < 4:
        raise ValueError(
            f"BOOKING_REF_LENGTH must be >= 4, got {config.dialogue.booking_ref_length}"
        )
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.max_tokens < 1:
        raise ValueError(f"LLM_MAX_TOKENS must be >= 1, got {config.model.max_tokens}")
    if config.model.timeout_sec <= 0:
        raise ValueError(f"LLM_TIMEOUT_SEC must be > 0, got {config.model.timeout_sec}")
    if config.model.max_attempts < 1:
        raise ValueError(
            f"LLM_MAX_ATTEMPTS must be >= 1, got {config.model.max_attempts}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter()
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
