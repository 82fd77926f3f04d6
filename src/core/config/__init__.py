# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for LingoCoach.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables
- LLM Providers: ordered provider list loaded from YAML
- YAML loader: Utility for loading YAML configuration files

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.conversation.default_agent)
    'practice_session'
"""

from src.core.config.llm_providers import (
    LLMProviderManager,
    ProviderConfig,
    get_provider_manager,
    reset_provider_manager,
)
from src.core.config.settings import (
    APISettings,
    ConversationSettings,
    DatabaseSettings,
    LLMSettings,
    MessagingSettings,
    OnboardingSettings,
    RedisSettings,
    Settings,
    SpeechSettings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from src.core.config.yaml_loader import YAMLLoadError, load_yaml

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "LLMSettings",
    "SpeechSettings",
    "MessagingSettings",
    "StorageSettings",
    "ConversationSettings",
    "OnboardingSettings",
    "APISettings",
    # LLM Provider Configuration
    "LLMProviderManager",
    "ProviderConfig",
    "get_provider_manager",
    "reset_provider_manager",
    # YAML utilities
    "load_yaml",
    "YAMLLoadError",
]
