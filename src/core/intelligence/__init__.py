# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence module for AI-powered operations.

LiteLLM is the single interface to chat, transcription and speech
providers. See src.core.intelligence.llm.
"""

from src.core.intelligence.llm import LLMClient, LLMError, ProviderChain

__all__ = [
    "LLMClient",
    "LLMError",
    "ProviderChain",
]
