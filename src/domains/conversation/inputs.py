# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbound message content to text.

Text messages pass through. Audio messages carry a blob reference that
is fetched from storage and transcribed.
"""

from pathlib import PurePosixPath
from typing import Literal, Protocol
from urllib.parse import urlparse

from src.core.intelligence.llm.interfaces import TranscriptionService

InputType = Literal["text", "audio"]
INPUT_TYPES = ("text", "audio")


class BlobReader(Protocol):
    async def get(self, reference: str) -> bytes: ...


def audio_filename(reference: str, default: str = "voice.ogg") -> str:
    """File name hint for a blob reference, e.g. "voice.ogg" for ".../abc/voice.ogg"."""
    name = PurePosixPath(urlparse(reference).path).name
    return name if "." in name else default


class InputTranscriber:
    """Resolves message content to text.

    Example:
        >>> transcriber = InputTranscriber(storage, chain)
        >>> await transcriber.to_text("audio", "inbound/u-1/msg-9.ogg")
        "I went to the market yesterday"
    """

    def __init__(self, storage: BlobReader, transcription: TranscriptionService) -> None:
        self._storage = storage
        self._transcription = transcription

    async def to_text(self, input_type: str, content: str) -> str:
        """Get the text of a message.

        Args:
            input_type: "text" or "audio".
            content: Message text, or a blob reference for audio.

        Returns:
            Stripped message text.

        Raises:
            ValueError: For an unknown input type.
            StorageError: If the audio cannot be fetched.
            LLMError: If transcription fails.
        """
        if input_type == "text":
            return content.strip()
        if input_type == "audio":
            audio = await self._storage.get(content)
            text = await self._transcription.transcribe(audio, audio_filename(content))
            return text.strip()
        raise ValueError(f"Unsupported input type: {input_type}")
