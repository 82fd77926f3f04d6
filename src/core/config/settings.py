# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for LingoCoach.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.conversation.history_window)
    10
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational database configuration.

    The database stores users, conversation turns, practice sessions,
    prompt templates, level tests and the onboarding backup trace.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "lingocoach"
    password: SecretStr = SecretStr("lingocoach_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "lingocoach"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for the ephemeral onboarding cache.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr | None = None
    database: int = 0
    max_connections: int = 20

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        if self.password is not None and self.password.get_secret_value():
            pwd = self.password.get_secret_value()
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"
        return f"redis://{self.host}:{self.port}/{self.database}"


class LLMSettings(BaseSettings):
    """LLM provider configuration using LiteLLM.

    Providers themselves (models, endpoints, order) are declared in
    config/llm/providers.yaml. These settings control how calls are made.

    Attributes:
        providers_config: Path to the providers YAML file.
        request_timeout: Per-call timeout in seconds.
        max_retries: Retry rounds across the whole provider list.
        retry_delay_seconds: Delay before the second round, doubled each round.
        temperature: Default sampling temperature.
        evaluation_timeout: Deadline of each provider attempt at speech evaluation.
        grammar_timeout: Deadline of each provider attempt at grammar scoring.
        grammar_max_retries: Attempts for onboarding grammar scoring.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        extra="ignore",
    )

    providers_config: str = "config/llm/providers.yaml"
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    temperature: float = 0.2
    evaluation_timeout: float = 30.0
    grammar_timeout: float = 10.0
    grammar_max_retries: int = 3


class SpeechSettings(BaseSettings):
    """Speech-to-text and text-to-speech configuration.

    Attributes:
        stt_model: LiteLLM transcription model.
        tts_model: LiteLLM speech model.
        tts_voice: Voice used for synthesized replies.
        timeout: Timeout for one STT/TTS call in seconds.
        reply_with_audio: Also send synthesized audio for non-practice replies.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPEECH_",
        extra="ignore",
    )

    stt_model: str = "whisper-1"
    tts_model: str = "openai/tts-1"
    tts_voice: str = "alloy"
    timeout: float = 15.0
    reply_with_audio: bool = False


class MessagingSettings(BaseSettings):
    """Messaging platform API configuration.

    Attributes:
        telegram_bot_token: Telegram Bot API token.
        telegram_api_base: Telegram Bot API base URL.
        whatsapp_api_url: WhatsApp Cloud API phone-number endpoint.
        whatsapp_access_token: WhatsApp Cloud API bearer token.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="MESSAGING_",
        extra="ignore",
    )

    telegram_bot_token: SecretStr = SecretStr("")
    telegram_api_base: str = "https://api.telegram.org"
    whatsapp_api_url: str = "https://graph.facebook.com/v19.0/me"
    whatsapp_access_token: SecretStr = SecretStr("")
    timeout: float = 10.0

    @property
    def telegram_api_url(self) -> str:
        """Build the bot-scoped Telegram API URL."""
        return f"{self.telegram_api_base}/bot{self.telegram_bot_token.get_secret_value()}"


class StorageSettings(BaseSettings):
    """Blob storage configuration for generated audio.

    Attributes:
        root_dir: Directory where blobs are written.
        public_base_url: Public URL prefix serving root_dir.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore",
    )

    root_dir: str = "var/blobs"
    public_base_url: str = "http://localhost:8000/media"


class ConversationSettings(BaseSettings):
    """Routing and conversation-history configuration.

    Attributes:
        history_window: Number of most recent turns loaded as context.
        min_word_threshold: Messages with fewer words skip the router.
        default_agent: Agent used when the router cannot decide.
        short_response_agent: Agent used for too-short messages.
        agents_config: Path to the agent catalog manifest.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONVERSATION_",
        extra="ignore",
    )

    history_window: int = 10
    min_word_threshold: int = 3
    default_agent: str = "practice_session"
    short_response_agent: str = "short_response"
    agents_config: str = "config/agents/manifest.yaml"


class OnboardingSettings(BaseSettings):
    """Onboarding flow configuration.

    Attributes:
        cache_ttl_seconds: TTL of the cached onboarding state.
        state_expiry_hours: Age after which a state counts as abandoned.
        default_grammar_score: Grammar score used when scoring calls fail.
        fallback_score: Score used for every dimension if scoring fails.
    """

    model_config = SettingsConfigDict(
        env_prefix="ONBOARDING_",
        extra="ignore",
    )

    cache_ttl_seconds: int = 3600
    state_expiry_hours: int = 2
    default_grammar_score: int = 60
    fallback_score: int = 60


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        redis: Redis settings.
        llm: LLM call settings.
        speech: STT/TTS settings.
        messaging: Messaging platform settings.
        storage: Blob storage settings.
        conversation: Routing and history settings.
        onboarding: Onboarding flow settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    speech: SpeechSettings = Field(default_factory=SpeechSettings)
    messaging: MessagingSettings = Field(default_factory=MessagingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)
    onboarding: OnboardingSettings = Field(default_factory=OnboardingSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Singleton Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful in tests that patch environment variables.
    """
    get_settings.cache_clear()
