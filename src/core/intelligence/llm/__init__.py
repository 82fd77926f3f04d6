# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM, transcription and speech clients using LiteLLM.

Components:
- LLMClient: One provider, one attempt per call
- ProviderChain: Ordered provider fallback with exponential backoff
- Interfaces: Protocols the rest of the code depends on

Example:
    >>> from src.core.intelligence.llm import build_provider_chain, Message
    >>> chain = build_provider_chain(settings)
    >>> response = await chain.complete("You are Alex.", [Message("user", "Hi")])
"""

from src.core.intelligence.llm.client import LLMClient, LLMError, LLMResponse, Message
from src.core.intelligence.llm.fallback import ProviderChain, build_provider_chain
from src.core.intelligence.llm.interfaces import (
    AIServices,
    ChatCompletionService,
    SpeechSynthesisService,
    TranscriptionService,
)

__all__ = [
    "LLMClient",
    "LLMError",
    "LLMResponse",
    "Message",
    "ProviderChain",
    "build_provider_chain",
    "AIServices",
    "ChatCompletionService",
    "SpeechSynthesisService",
    "TranscriptionService",
]
