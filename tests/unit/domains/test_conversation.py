# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the conversation store and input transcription."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.intelligence.llm.client import LLMError
from src.domains.conversation.inputs import InputTranscriber, audio_filename
from src.domains.conversation.store import ConversationStore, Turn, format_history
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import ConversationTurn

START = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def turn_row(index: int, role: str = "user") -> ConversationTurn:
    return ConversationTurn(
        id=index,
        user_id="user-1",
        role=role,
        content=f"message {index}",
        agent_name="meta_query" if role == "assistant" else None,
        created_at=START + timedelta(minutes=index),
    )


def newest_first(count: int) -> list[ConversationTurn]:
    return [turn_row(index) for index in range(count, 0, -1)]


class TestAppend:
    """Tests for ConversationStore.append."""

    @pytest.mark.asyncio
    async def test_user_turn(self, session_factory) -> None:
        store = ConversationStore(session_factory)

        stored = await store.append("user-1", "user", "Hello!", agent_name="ignored")

        assert stored is True
        [row] = session_factory.session.added_of(ConversationTurn)
        assert row.role == "user"
        assert row.content == "Hello!"
        assert row.agent_name is None
        assert row.created_at is not None

    @pytest.mark.asyncio
    async def test_assistant_turn_keeps_agent(self, session_factory) -> None:
        store = ConversationStore(session_factory)

        await store.append("user-1", "assistant", "Hi María!", agent_name="short_response")

        [row] = session_factory.session.added_of(ConversationTurn)
        assert row.agent_name == "short_response"

    @pytest.mark.asyncio
    async def test_invalid_role(self, session_factory) -> None:
        store = ConversationStore(session_factory)

        with pytest.raises(ValueError):
            await store.append("user-1", "system", "You are a bot")

    @pytest.mark.asyncio
    async def test_database_failure_returns_false(self, session_factory) -> None:
        session_factory.error = DatabaseError("connection refused")
        store = ConversationStore(session_factory)

        assert await store.append("user-1", "user", "Hello!") is False


class TestWindow:
    """Tests for ConversationStore.window."""

    @pytest.mark.asyncio
    async def test_chronological_order(self, session_factory) -> None:
        session_factory.session.results.append(newest_first(3))
        store = ConversationStore(session_factory, window=10)

        turns = await store.window("user-1")

        assert [turn.content for turn in turns] == ["message 1", "message 2", "message 3"]

    @pytest.mark.asyncio
    async def test_exclude_latest(self, session_factory) -> None:
        session_factory.session.results.append(newest_first(4))
        store = ConversationStore(session_factory, window=3)

        turns = await store.window("user-1", exclude_latest=True)

        assert [turn.content for turn in turns] == ["message 1", "message 2", "message 3"]

    @pytest.mark.asyncio
    async def test_window_is_bounded(self, session_factory) -> None:
        session_factory.session.results.append(newest_first(5))
        store = ConversationStore(session_factory, window=2)

        turns = await store.window("user-1")

        assert [turn.content for turn in turns] == ["message 4", "message 5"]

    @pytest.mark.asyncio
    async def test_empty_history(self, session_factory) -> None:
        store = ConversationStore(session_factory)

        assert await store.window("user-1", exclude_latest=True) == []

    @pytest.mark.asyncio
    async def test_read_failure_returns_empty(self, session_factory) -> None:
        session_factory.error = DatabaseError("timeout")
        store = ConversationStore(session_factory)

        assert await store.window("user-1") == []

    def test_format_history(self) -> None:
        turns = [Turn("user", "Hi!"), Turn("assistant", "Hello, how are you?")]

        assert format_history(turns) == "user: Hi!\nassistant: Hello, how are you?"
        assert format_history([]) == ""


class TestInputTranscriber:
    """Tests for InputTranscriber."""

    @pytest.fixture
    def storage(self) -> MagicMock:
        mock = MagicMock()
        mock.get = AsyncMock(return_value=b"ogg-bytes")
        return mock

    @pytest.mark.asyncio
    async def test_text_passes_through(self, storage, chat) -> None:
        transcriber = InputTranscriber(storage, chat)

        assert await transcriber.to_text("text", "  Hello Alex  ") == "Hello Alex"
        storage.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_audio_is_fetched_and_transcribed(self, storage, chat) -> None:
        transcriber = InputTranscriber(storage, chat)

        text = await transcriber.to_text("audio", "https://files.example.com/u/1/voice.oga")

        assert text == "I went to the beach yesterday"
        storage.get.assert_awaited_once_with("https://files.example.com/u/1/voice.oga")
        chat.transcribe.assert_awaited_once_with(b"ogg-bytes", "voice.oga")

    @pytest.mark.asyncio
    async def test_transcription_error_propagates(self, storage, chat) -> None:
        chat.transcribe = AsyncMock(side_effect=LLMError("whisper down"))
        transcriber = InputTranscriber(storage, chat)

        with pytest.raises(LLMError):
            await transcriber.to_text("audio", "inbound/u-1/msg-9.ogg")

    @pytest.mark.asyncio
    async def test_unknown_input_type(self, storage, chat) -> None:
        transcriber = InputTranscriber(storage, chat)

        with pytest.raises(ValueError):
            await transcriber.to_text("sticker", "🙂")

    def test_audio_filename(self) -> None:
        assert audio_filename("inbound/u-1/msg-9.ogg") == "msg-9.ogg"
        assert audio_filename("https://api.example.com/file?id=123") == "voice.ogg"
