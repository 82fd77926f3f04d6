# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Narrow interfaces consumed by agents, router and pipelines."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from src.core.intelligence.llm.client import LLMResponse, Message


class ChatCompletionService(Protocol):
    async def complete(
        self,
        system_prompt: str,
        messages: Sequence["Message"],
        *,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> "LLMResponse": ...


class TranscriptionService(Protocol):
    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str: ...


class SpeechSynthesisService(Protocol):
    async def synthesize(self, text: str) -> bytes: ...


class AIServices(ChatCompletionService, TranscriptionService, SpeechSynthesisService, Protocol):
    """Chat, transcription and synthesis behind one object."""
