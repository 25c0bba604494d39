"""Testes unitários para config/settings.py."""

from __future__ import annotations

import pytest

from lostfound_assistant.config.settings import Settings, get_settings


class TestSettingsDefaults:
    """Valores padrão do assistente."""

    def test_session_defaults(self) -> None:
        s = Settings()
        assert s.session_ttl_seconds == 1800
        assert s.effective_sweep_interval_seconds == 300
        assert s.chat_history_window == 10
        assert s.max_message_length_chars == 1000

    def test_llm_defaults(self) -> None:
        s = Settings()
        assert s.llm_model == "openai/gpt-oss-20b"
        assert s.llm_temperature == 0.3
        assert s.llm_max_tokens == 600

    def test_explicit_sweep_interval_wins(self) -> None:
        assert Settings(session_sweep_interval_seconds=5).effective_sweep_interval_seconds == 5


class TestValidation:
    def test_development_defaults_are_valid(self) -> None:
        s = Settings(environment="development")
        assert s.validate_session_store_config() == []
        assert s.validate_llm_config() == []

    def test_memory_backend_forbidden_in_production(self) -> None:
        errors = Settings(environment="production").validate_session_store_config()
        assert any("memory" in e for e in errors)

    def test_redis_requires_url(self) -> None:
        errors = Settings(session_store_backend="redis", redis_url=None).validate_session_store_config()
        assert any("REDIS_URL" in e for e in errors)

    def test_unknown_backend(self) -> None:
        errors = Settings(session_store_backend="dynamodb").validate_session_store_config()
        assert len(errors) == 1

    def test_llm_key_required_in_production(self) -> None:
        errors = Settings(environment="production", llm_api_key=None).validate_llm_config()
        assert errors == ["LLM_API_KEY obrigatório em produção"]


def test_env_vars_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SESSION_TTL_SECONDS", "120")
    get_settings.cache_clear()
    try:
        assert get_settings().session_ttl_seconds == 120
    finally:
        get_settings.cache_clear()
