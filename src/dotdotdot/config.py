"""Configuration management for dotdotdot."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_CSRF_SECRET = "dev-secret-change-in-production"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="",
        populate_by_name=True,
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging Configuration
    log_to_file: bool = Field(default=False, description="Enable file-based logging")
    log_directory: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Max size per log file before rotation",
    )
    log_file_backup_count: int = Field(default=5, description="Number of rotated log files to keep")
    log_file_prefix: str = Field(default="dotdotdot", description="Prefix for log file names")

    # HTTP server
    api_host: str = Field(
        default="0.0.0.0",  # nosec B104 - Intentional for Docker container
        description="Interface the API server binds to",
    )
    api_port: int = Field(default=8080, description="Port the API server listens on")
    allowed_origins_str: str | None = Field(
        default=None,
        alias="ALLOWED_ORIGINS",
        description="Origins allowed to call the API (comma-separated)",
    )

    # CSRF
    csrf_secret: SecretStr | None = Field(
        default=None, description="Server secret used to sign CSRF tokens"
    )
    csrf_session_id: str = Field(
        default="dev-session",
        alias="SESSION_ID",
        description="Session identifier embedded in development tokens",
    )
    csrf_token_max_age_ms: int = Field(
        default=5 * 60 * 1000, description="Maximum CSRF token age in milliseconds"
    )

    # Response cache
    cache_enabled: bool = Field(
        default=False, alias="ENABLE_CACHE", description="Enable the response cache"
    )
    cache_ttl_ms: int = Field(
        default=3600000, alias="CACHE_TTL", description="Cache entry TTL in milliseconds"
    )
    cache_max_size: int = Field(
        default=1000, alias="CACHE_MAX_SIZE", description="Maximum number of cache entries"
    )
    cache_key_prefix: str = Field(default="cache", description="Key prefix for cache entries")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable per-caller rate limiting")
    rate_limit_window_ms: int = Field(
        default=60 * 1000, description="Fixed rate-limit window in milliseconds"
    )
    rate_limit_max_requests: int = Field(
        default=10, description="Maximum requests per caller per window"
    )
    rate_limit_key_prefix: str = Field(
        default="rate_limit", description="Key prefix for rate-limit counters"
    )

    # Key-value store
    kv_backend: str = Field(default="memory", description="Backing store: memory or redis")
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis URL when kv_backend=redis"
    )
    kv_key_prefix: str = Field(default="dotdotdot", description="Namespace for all store keys")

    # Summarizer
    summarizer_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        alias="SUMMARIZER_API_URL",
        description="OpenAI-compatible chat completions endpoint",
    )
    summarizer_api_key: SecretStr | None = Field(
        default=None, alias="SUMMARIZER_API_KEY", description="Bearer token for the summarizer"
    )
    summarizer_model: str = Field(
        default="llama-3.1-8b-instant", description="Model requested from the summarizer"
    )
    summarizer_temperature: float = Field(default=0.3, description="Sampling temperature")
    summarizer_max_tokens: int = Field(default=300, description="Maximum tokens in the reply")
    summarizer_timeout_seconds: float = Field(
        default=20.0, description="Timeout for a single summarizer attempt"
    )
    summarizer_max_attempts: int = Field(
        default=3, description="Attempts before a summarizer failure is terminal"
    )
    summarizer_backoff_seconds: float = Field(
        default=1.0, description="Base delay; attempt N waits N times this value"
    )

    # Request pipeline
    request_deadline_seconds: float = Field(
        default=30.0, description="Overall deadline for one bullets request"
    )
    input_max_chars: int = Field(default=1000, description="Cleaned input is truncated to this")
    input_min_chars: int = Field(default=10, description="Shorter cleaned input is rejected")

    @field_validator(
        "csrf_token_max_age_ms",
        "cache_ttl_ms",
        "cache_max_size",
        "rate_limit_window_ms",
        "rate_limit_max_requests",
        "summarizer_max_attempts",
        "input_max_chars",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate counts and durations are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator("request_deadline_seconds", "summarizer_timeout_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got: {v}")
        return v

    @field_validator("summarizer_backoff_seconds")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        """Validate the backoff base is not negative."""
        if v < 0:
            raise ValueError(f"summarizer_backoff_seconds must not be negative, got: {v}")
        return v

    @field_validator("kv_backend")
    @classmethod
    def validate_kv_backend(cls, v: str) -> str:
        """Validate key-value backend choice."""
        valid_backends = ["memory", "redis"]
        if v not in valid_backends:
            raise ValueError(f"kv_backend must be one of {valid_backends}, got: {v}")
        return v

    @property
    def allowed_origins(self) -> list[str]:
        """Parse and return allowed origins as a list."""
        if self.allowed_origins_str is None:
            return []
        return [o.strip().rstrip("/") for o in self.allowed_origins_str.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def csrf_secret_value(self) -> str:
        """Get the CSRF secret, falling back to the development default."""
        if self.csrf_secret is None or not self.csrf_secret.get_secret_value():
            return DEV_CSRF_SECRET
        return self.csrf_secret.get_secret_value()

    @property
    def log_file_path(self) -> str:
        """Get the full log file path."""
        return f"{self.log_directory}/{self.log_file_prefix}.log"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
