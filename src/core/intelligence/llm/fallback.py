# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provider fallback chain.

ProviderChain wraps an ordered list of single-provider clients behind the
same complete/transcribe/synthesize interface. Each round tries every
provider in order; between rounds it waits with exponential backoff.
After max_retries rounds the last error is raised as an LLMError with
error_code "providers_exhausted", so callers apply their own fallback.

Example:
    >>> chain = build_provider_chain(get_settings())
    >>> response = await chain.complete(system_prompt, [Message("user", text)])
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Optional, TypeVar

from src.core.config.llm_providers import get_provider_manager
from src.core.intelligence.llm.client import LLMClient, LLMError, LLMResponse, Message

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderChain:
    """Ordered provider fallback with bounded, backed-off retries.

    Attributes:
        clients: Provider clients in priority order.
        max_retries: Number of rounds over the provider list.
        retry_delay: Delay before the second round, doubled each round.
    """

    def __init__(
        self,
        clients: Sequence[LLMClient],
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clients = list(clients)
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._sleep = sleep

    @property
    def clients(self) -> list[LLMClient]:
        return list(self._clients)

    async def _run(
        self,
        operation: str,
        candidates: Sequence[LLMClient],
        call: Callable[[LLMClient], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> T:
        if not candidates:
            raise LLMError(
                message=f"No providers available for {operation}",
                error_code="no_providers",
            )

        last_error: Optional[LLMError] = None
        for attempt in range(self._max_retries):
            if attempt > 0:
                delay = self._retry_delay * (2 ** (attempt - 1))
                logger.info(
                    "Retrying %s: round=%d/%d, delay=%.1fs",
                    operation,
                    attempt + 1,
                    self._max_retries,
                    delay,
                )
                await self._sleep(delay)

            for client in candidates:
                try:
                    if timeout is None:
                        return await call(client)
                    return await asyncio.wait_for(call(client), timeout=timeout)
                except asyncio.TimeoutError as e:
                    last_error = LLMError(
                        message=f"{operation} timed out after {timeout:.1f}s",
                        error_code="timeout",
                        original_error=e,
                    )
                    logger.warning(
                        "Provider timed out: operation=%s, provider=%s",
                        operation,
                        client.provider.code,
                    )
                except LLMError as e:
                    last_error = e
                    logger.warning(
                        "Provider failed: operation=%s, provider=%s, code=%s",
                        operation,
                        client.provider.code,
                        e.error_code,
                    )

        logger.error(
            "All providers failed: operation=%s, rounds=%d, providers=%s",
            operation,
            self._max_retries,
            [c.provider.code for c in candidates],
        )
        raise LLMError(
            message=f"All providers failed for {operation}",
            model=last_error.model if last_error else None,
            error_code="providers_exhausted",
            original_error=last_error,
        )

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
        """Chat completion with provider fallback.

        A timeout bounds each provider attempt, not the whole chain, so a
        hanging provider is abandoned and the next one is tried.

        Raises:
            LLMError: When every provider fails in every round.
        """
        return await self._run(
            "completion",
            self._clients,
            lambda client: client.complete(
                system_prompt,
                messages,
                json_mode=json_mode,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            ),
            timeout=timeout,
        )

    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str:
        """Transcription with fallback across speech-capable providers.

        Raises:
            LLMError: When every provider fails in every round.
        """
        return await self._run(
            "transcription",
            [c for c in self._clients if c.supports_speech],
            lambda client: client.transcribe(audio, filename),
        )

    async def synthesize(self, text: str) -> bytes:
        """Speech synthesis with fallback across speech-capable providers.

        Raises:
            LLMError: When every provider fails in every round.
        """
        return await self._run(
            "speech synthesis",
            [c for c in self._clients if c.supports_speech],
            lambda client: client.synthesize(text),
        )


def build_provider_chain(settings: "Settings") -> ProviderChain:
    """Build a ProviderChain over the available configured providers.

    Args:
        settings: Application settings.

    Returns:
        ProviderChain in providers.yaml order.
    """
    manager = get_provider_manager(settings.llm.providers_config)
    clients = [
        LLMClient(provider, settings.llm, settings.speech)
        for provider in manager.available_providers()
    ]
    if not clients:
        logger.warning("No LLM providers have credentials; every LLM call will fail")

    return ProviderChain(
        clients,
        max_retries=settings.llm.max_retries,
        retry_delay=settings.llm.retry_delay_seconds,
    )
