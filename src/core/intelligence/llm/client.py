# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client using LiteLLM for multi-provider support.

One LLMClient talks to one provider from config/llm/providers.yaml.
API keys and endpoints are passed directly to LiteLLM calls rather than
through environment variables. Provider selection and retries live in
ProviderChain (see fallback.py); this client makes exactly one attempt.

Example:
    >>> from src.core.intelligence.llm import LLMClient, Message
    >>> client = LLMClient(provider, settings.llm, settings.speech)
    >>> response = await client.complete(
    ...     "You are a helpful English teacher.",
    ...     [Message("user", "How do I use the present perfect?")],
    ... )
    >>> print(response.content)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import litellm
from litellm import acompletion, aspeech, atranscription

from src.core.config.llm_providers import ProviderConfig
from src.core.config.settings import LLMSettings, SpeechSettings

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from an LLM completion.

    Attributes:
        content: The generated text content.
        model: The model that generated the response.
        provider: Code of the provider that served the call.
        tokens_input: Number of input tokens used.
        tokens_output: Number of output tokens generated.
        finish_reason: Why generation stopped (stop, length, etc.).
        raw_response: Original response object from LiteLLM.
    """

    content: str
    model: str
    provider: str = ""
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[object] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used (input + output)."""
        return self.tokens_input + self.tokens_output


class LLMError(Exception):
    """Exception raised when LLM operation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        error_code: Error code if available.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize LLMError.

        Args:
            message: Error description.
            model: Model that caused the error.
            error_code: Error code if available.
            original_error: Original exception if any.
        """
        self.message = message
        self.model = model
        self.error_code = error_code
        self.original_error = original_error
        super().__init__(self.message)


@dataclass
class Message:
    """A message in a conversation.

    Attributes:
        role: Message role (system, user, assistant).
        content: Message text content.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary format for LiteLLM."""
        return {"role": self.role, "content": self.content}


def _error_code(error: Exception) -> str:
    """Map a provider exception to a short error code."""
    if isinstance(error, litellm.Timeout):
        return "timeout"
    if isinstance(error, litellm.RateLimitError):
        return "rate_limited"
    if isinstance(error, litellm.AuthenticationError):
        return "invalid_key"
    return "provider_error"


class LLMClient:
    """Client for one LLM provider via LiteLLM.

    Provides chat completion, transcription and speech synthesis.
    Speech calls are only allowed for providers flagged supports_speech.

    Attributes:
        provider: The provider configuration.
        model: LiteLLM model string for chat completions.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        llm_settings: LLMSettings,
        speech_settings: Optional[SpeechSettings] = None,
    ):
        """Initialize the LLM client.

        Args:
            provider: Provider to call.
            llm_settings: LLM call settings (timeouts, temperature).
            speech_settings: STT/TTS models and voice.
        """
        self._provider = provider
        self._settings = llm_settings
        self._speech = speech_settings or SpeechSettings()
        self._timeout = float(provider.timeout_seconds or llm_settings.request_timeout)

        litellm.drop_params = True

        logger.debug(
            "LLMClient initialized: provider=%s, model=%s, timeout=%.1fs",
            provider.code,
            self.model,
            self._timeout,
        )

    @property
    def provider(self) -> ProviderConfig:
        return self._provider

    @property
    def model(self) -> str:
        return self._provider.get_litellm_model()

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def supports_speech(self) -> bool:
        return self._provider.supports_speech

    def _credentials(self) -> dict[str, Any]:
        params = self._provider.get_litellm_params()
        params.pop("model", None)
        return params

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        *,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate a chat completion.

        Args:
            system_prompt: System prompt setting the agent's behavior.
            messages: Conversation messages after the system prompt.
            json_mode: Ask the provider for a JSON object response.
            temperature: Sampling temperature. Falls back to settings.
            max_tokens: Maximum tokens to generate.
            timeout: Request timeout in seconds. Falls back to the provider's.

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            LLMError: If the call fails or times out.
        """
        chat_messages = [{"role": "system", "content": system_prompt}]
        chat_messages.extend(m.to_dict() for m in messages)

        extra: dict[str, Any] = {}
        if json_mode:
            extra["response_format"] = {"type": "json_object"}

        try:
            response = await acompletion(
                model=self.model,
                messages=chat_messages,
                temperature=self._settings.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self._provider.max_output_tokens,
                timeout=timeout or self._timeout,
                **self._credentials(),
                **extra,
            )
        except Exception as e:
            logger.warning(
                "Completion failed: provider=%s, model=%s, error=%s",
                self._provider.code,
                self.model,
                str(e),
            )
            raise LLMError(
                message=f"Completion failed: {str(e)}",
                model=self.model,
                error_code=_error_code(e),
                original_error=e,
            ) from e

        content = response.choices[0].message.content or ""
        finish_reason = response.choices[0].finish_reason or "stop"
        usage = getattr(response, "usage", None)

        logger.debug(
            "Completion generated: provider=%s, model=%s, chars=%d",
            self._provider.code,
            self.model,
            len(content),
        )

        return LLMResponse(
            content=content,
            model=self.model,
            provider=self._provider.code,
            tokens_input=getattr(usage, "prompt_tokens", 0) or 0,
            tokens_output=getattr(usage, "completion_tokens", 0) or 0,
            finish_reason=finish_reason,
            raw_response=response,
        )

    def _require_speech(self, operation: str) -> None:
        if not self.supports_speech:
            raise LLMError(
                message=f"Provider {self._provider.code} does not support {operation}",
                model=self.model,
                error_code="unsupported",
            )

    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str:
        """Transcribe audio to text.

        Args:
            audio: Raw audio bytes.
            filename: File name hint for the audio container format.

        Returns:
            The transcribed text, stripped.

        Raises:
            LLMError: If the provider cannot transcribe or the call fails.
        """
        self._require_speech("transcription")
        try:
            response = await atranscription(
                model=self._speech.stt_model,
                file=(filename, audio),
                timeout=self._speech.timeout,
                **self._credentials(),
            )
        except Exception as e:
            logger.warning(
                "Transcription failed: provider=%s, error=%s", self._provider.code, str(e)
            )
            raise LLMError(
                message=f"Transcription failed: {str(e)}",
                model=self._speech.stt_model,
                error_code=_error_code(e),
                original_error=e,
            ) from e

        return (getattr(response, "text", "") or "").strip()

    async def synthesize(self, text: str) -> bytes:
        """Synthesize speech audio for a text.

        Args:
            text: Text to speak.

        Returns:
            Encoded audio bytes.

        Raises:
            LLMError: If the provider cannot synthesize or the call fails.
        """
        self._require_speech("speech synthesis")
        try:
            response = await aspeech(
                model=self._speech.tts_model,
                input=text,
                voice=self._speech.tts_voice,
                timeout=self._speech.timeout,
                **self._credentials(),
            )
        except Exception as e:
            logger.warning(
                "Speech synthesis failed: provider=%s, error=%s", self._provider.code, str(e)
            )
            raise LLMError(
                message=f"Speech synthesis failed: {str(e)}",
                model=self._speech.tts_model,
                error_code=_error_code(e),
                original_error=e,
            ) from e

        return response.content

    def __repr__(self) -> str:
        return f"LLMClient(provider={self._provider.code!r}, model={self.model!r})"
