# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM Provider Configuration from YAML.

This module loads the ordered LLM provider list from config/llm/providers.yaml.
Order matters: the provider fallback chain tries providers in the order they
are declared, so the first available provider is the primary one.

Usage:
    from src.core.config.llm_providers import get_provider_manager

    manager = get_provider_manager()
    for provider in manager.available_providers():
        params = provider.get_litellm_params()
        # {"model": "gemini/gemini-2.0-flash-lite", "api_key": "..."}
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from src.core.config.yaml_loader import YAMLLoadError, load_yaml

logger = logging.getLogger(__name__)

# LiteLLM model prefixes per provider type
_MODEL_PREFIXES = {
    "google": "gemini/",
    "deepseek": "deepseek/",
    "anthropic": "anthropic/",
}


@dataclass
class ProviderConfig:
    """Configuration for a single LLM provider.

    Attributes:
        code: Provider code (e.g., 'google', 'openai', 'deepseek').
        type: Provider type for LiteLLM routing.
        enabled: Whether this provider is enabled.
        description: Human-readable description.
        api_base: Base URL for the API endpoint.
        api_key: API key for authentication.
        default_model: Default model to use.
        timeout_seconds: Request timeout.
        max_output_tokens: Maximum output tokens.
        supports_speech: Whether STT/TTS calls may be routed here.
    """

    code: str
    type: str = "openai"
    enabled: bool = True
    description: str = ""
    api_base: str | None = None
    api_key: str | None = None
    default_model: str = ""
    timeout_seconds: int = 30
    max_output_tokens: int = 4096
    supports_speech: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderConfig":
        """Create ProviderConfig from a YAML entry.

        The API key is read from ``api_key`` or, preferably, from the
        environment variable named by ``api_key_env``.

        Args:
            data: Configuration dictionary.

        Returns:
            ProviderConfig instance.
        """
        api_key = data.get("api_key")
        if not api_key and data.get("api_key_env"):
            api_key = os.environ.get(data["api_key_env"])

        return cls(
            code=data["code"],
            type=data.get("type", data["code"]),
            enabled=data.get("enabled", True),
            description=data.get("description", ""),
            api_base=data.get("api_base"),
            api_key=api_key or None,
            default_model=data.get("default_model", ""),
            timeout_seconds=data.get("timeout_seconds", 30),
            max_output_tokens=data.get("max_output_tokens", 4096),
            supports_speech=data.get("supports_speech", False),
        )

    def get_litellm_model(self, model: str | None = None) -> str:
        """Get model string in LiteLLM format.

        Args:
            model: Optional model override. Uses default_model if not specified.

        Returns:
            Model string with provider prefix (e.g., 'gemini/gemini-2.0-flash').
        """
        use_model = model or self.default_model
        prefix = _MODEL_PREFIXES.get(self.type)
        if prefix and not use_model.startswith(prefix):
            return f"{prefix}{use_model}"
        return use_model

    def get_litellm_params(self, model: str | None = None) -> dict[str, Any]:
        """Get parameters to pass to LiteLLM acompletion().

        Args:
            model: Optional model override.

        Returns:
            Dictionary with model and, when configured, api_base and api_key.
        """
        params: dict[str, Any] = {"model": self.get_litellm_model(model)}

        if self.api_base:
            params["api_base"] = self.api_base

        if self.api_key:
            params["api_key"] = self.api_key

        return params

    def is_available(self) -> bool:
        """Check if provider is available for use.

        A provider is available when it is enabled and has credentials.

        Returns:
            True if provider can be used.
        """
        return self.enabled and bool(self.api_key)


class LLMProviderManager:
    """Manages the ordered list of LLM provider configurations.

    Attributes:
        providers: Provider configurations in declaration order.
    """

    DEFAULT_CONFIG_PATH = "config/llm/providers.yaml"

    def __init__(self, config_path: str | Path | None = None):
        """Initialize the provider manager.

        Args:
            config_path: Path to providers.yaml. Uses default if not specified.
        """
        self._config_path = Path(config_path or self.DEFAULT_CONFIG_PATH)
        self._providers: list[ProviderConfig] = []

        self._load_config()

    def _load_config(self) -> None:
        """Load and parse the providers YAML configuration."""
        if not self._config_path.exists():
            logger.warning(
                "LLM providers config not found at %s, using defaults",
                self._config_path,
            )
            self._setup_defaults()
            return

        try:
            raw = load_yaml(self._config_path)
        except YAMLLoadError as e:
            logger.error("Failed to load providers config: %s", e)
            self._setup_defaults()
            return

        for entry in raw.get("providers", []):
            self._providers.append(ProviderConfig.from_dict(entry))

        logger.info(
            "Loaded LLM provider config: providers=%s, available=%s",
            [p.code for p in self._providers],
            [p.code for p in self.available_providers()],
        )

    def _setup_defaults(self) -> None:
        """Setup default provider order when YAML is not available."""
        self._providers = [
            ProviderConfig(
                code="google",
                type="google",
                default_model="gemini-2.0-flash-lite",
                api_key=os.environ.get("GOOGLE_API_KEY"),
            ),
            ProviderConfig(
                code="openai",
                type="openai",
                default_model="gpt-4o-mini",
                api_key=os.environ.get("OPENAI_API_KEY"),
                supports_speech=True,
            ),
            ProviderConfig(
                code="deepseek",
                type="deepseek",
                default_model="deepseek-chat",
                api_base="https://api.deepseek.com/v1",
                api_key=os.environ.get("DEEPSEEK_API_KEY"),
            ),
        ]

    @property
    def providers(self) -> list[ProviderConfig]:
        """Get all providers in declaration order."""
        return list(self._providers)

    def get_provider(self, code: str) -> ProviderConfig | None:
        """Get provider configuration by code.

        Args:
            code: Provider code.

        Returns:
            ProviderConfig or None if not found.
        """
        for provider in self._providers:
            if provider.code == code:
                return provider
        return None

    def available_providers(self) -> list[ProviderConfig]:
        """Get enabled providers with credentials, in order."""
        return [p for p in self._providers if p.is_available()]


# Singleton instance
_provider_manager: LLMProviderManager | None = None


def get_provider_manager(config_path: str | Path | None = None) -> LLMProviderManager:
    """Get the singleton LLM provider manager.

    Args:
        config_path: Path used on first construction only.

    Returns:
        LLMProviderManager instance.
    """
    global _provider_manager
    if _provider_manager is None:
        _provider_manager = LLMProviderManager(config_path)
    return _provider_manager


def reset_provider_manager() -> None:
    """Reset the singleton provider manager.

    Useful for testing or configuration reloads.
    """
    global _provider_manager
    _provider_manager = None
