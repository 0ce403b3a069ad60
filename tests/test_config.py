"""Tests for configuration loading and validation."""

import dataclasses

import pytest

from docbot.config import (
    AppConfig,
    DialogueConfig,
    ModelConfig,
    RetrievalConfig,
    SessionConfig,
    _safe_float,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_defaults(self):
        retrieval = RetrievalConfig()
        assert retrieval.chunk_size == 800
        assert retrieval.chunk_overlap == 100
        assert retrieval.top_k == 5
        assert SessionConfig().ttl_minutes == 30

    def test_configs_are_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            RetrievalConfig().top_k = 3

    @pytest.mark.parametrize("overlap", [-1, 800, 900])
    def test_invalid_overlap(self, overlap):
        config = AppConfig(retrieval=RetrievalConfig(chunk_size=800, chunk_overlap=overlap))
        with pytest.raises(ValueError, match="CHUNK_OVERLAP"):
            _validate_config(config)

    def test_invalid_chunk_size(self):
        config = AppConfig(retrieval=RetrievalConfig(chunk_size=0, chunk_overlap=0))
        with pytest.raises(ValueError, match="CHUNK_SIZE"):
            _validate_config(config)

    def test_invalid_top_k(self):
        config = AppConfig(retrieval=RetrievalConfig(top_k=0))
        with pytest.raises(ValueError, match="SEARCH_TOP_K"):
            _validate_config(config)

    def test_invalid_session_ttl(self):
        config = AppConfig(sessions=SessionConfig(ttl_minutes=0))
        with pytest.raises(ValueError, match="SESSION_TTL_MINUTES"):
            _validate_config(config)

    def test_unsupported_language(self):
        config = AppConfig(dialogue=DialogueConfig(default_language="fr"))
        with pytest.raises(ValueError, match="DEFAULT_LANGUAGE"):
            _validate_config(config)

    def test_short_booking_ref(self):
        config = AppConfig(dialogue=DialogueConfig(booking_ref_length=2))
        with pytest.raises(ValueError, match="BOOKING_REF_LENGTH"):
            _validate_config(config)

    def test_invalid_history_list_limit(self):
        config = AppConfig(dialogue=DialogueConfig(history_list_limit=0))
        with pytest.raises(ValueError, match="HISTORY_LIST_LIMIT"):
            _validate_config(config)

    def test_history_listing_defaults_above_prompt_window(self):
        dialogue = DialogueConfig()
        assert dialogue.history_list_limit > dialogue.history_window

    @pytest.mark.parametrize("temperature", [3.0, -0.5])
    def test_invalid_temperature(self, temperature):
        config = AppConfig(model=ModelConfig(llm_temperature=temperature))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_timeout(self):
        config = AppConfig(model=ModelConfig(timeout_sec=0))
        with pytest.raises(ValueError, match="LLM_TIMEOUT_SEC"):
            _validate_config(config)

    def test_invalid_attempts(self):
        config = AppConfig(model=ModelConfig(max_attempts=0))
        with pytest.raises(ValueError, match="LLM_MAX_ATTEMPTS"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DOCBOT_TEST_INT", "7")
        assert _safe_int("DOCBOT_TEST_INT", "1") == 7

    def test_safe_int_bad_value(self, monkeypatch):
        monkeypatch.setenv("DOCBOT_TEST_INT", "seven")
        with pytest.raises(ValueError, match="DOCBOT_TEST_INT"):
            _safe_int("DOCBOT_TEST_INT", "1")

    def test_safe_float_bad_value(self, monkeypatch):
        monkeypatch.setenv("DOCBOT_TEST_FLOAT", "warm")
        with pytest.raises(ValueError, match="DOCBOT_TEST_FLOAT"):
            _safe_float("DOCBOT_TEST_FLOAT", "0.5")
