"""Tests for configuration management."""

import pytest
from pydantic import ValidationError


def create_test_settings(**kwargs):
    """Helper to create Settings instance without loading .env file."""
    from dotdotdot.config import Settings

    return Settings(_env_file=None, **kwargs)


class TestSettingsDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CSRF_SECRET", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        settings = create_test_settings()

        assert settings.environment == "production"
        assert settings.rate_limit_window_ms == 60_000
        assert settings.rate_limit_max_requests == 10
        assert settings.cache_enabled is False
        assert settings.cache_ttl_ms == 3_600_000
        assert settings.cache_max_size == 1000
        assert settings.csrf_token_max_age_ms == 300_000
        assert settings.kv_backend == "memory"
        assert settings.allowed_origins == []
        assert settings.csrf_secret_value == "dev-secret-change-in-production"


class TestSettingsFromEnv:
    def test_legacy_variable_names(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_CACHE", "true")
        monkeypatch.setenv("CACHE_TTL", "1000")
        monkeypatch.setenv("CACHE_MAX_SIZE", "50")
        monkeypatch.setenv("SESSION_ID", "abc")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example/, https://b.example")
        monkeypatch.setenv("SUMMARIZER_API_KEY", "key-123")

        settings = create_test_settings()

        assert settings.cache_enabled is True
        assert settings.cache_ttl_ms == 1000
        assert settings.cache_max_size == 50
        assert settings.csrf_session_id == "abc"
        assert settings.allowed_origins == ["https://a.example", "https://b.example"]
        assert settings.summarizer_api_key.get_secret_value() == "key-123"

    def test_environment_flags(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "Development")
        monkeypatch.setenv("CSRF_SECRET", "s3cret")

        settings = create_test_settings()

        assert settings.is_development is True
        assert settings.csrf_secret_value == "s3cret"


class TestSettingsValidation:
    @pytest.mark.parametrize(
        "field",
        ["rate_limit_max_requests", "rate_limit_window_ms", "cache_max_size", "input_max_chars"],
    )
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            create_test_settings(**{field: 0})

    def test_invalid_backend_rejected(self) -> None:
        with pytest.raises(ValidationError, match="kv_backend"):
            create_test_settings(kv_backend="memcached")

    def test_negative_backoff_rejected(self) -> None:
        with pytest.raises(ValidationError):
            create_test_settings(summarizer_backoff_seconds=-1)

    def test_zero_deadline_rejected(self) -> None:
        with pytest.raises(ValidationError):
            create_test_settings(request_deadline_seconds=0)


class TestGetSettings:
    def test_cached(self) -> None:
        from dotdotdot.config import get_settings

        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()
