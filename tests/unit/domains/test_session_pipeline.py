# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the practice session pipeline.

Tests cover:
- Evaluation, XP and streak on a committed session
- Fallback evaluation and feedback texts
- Provider fallback under a per-attempt deadline
- Rollback when the session cannot be persisted
- Spoken feedback failures
- After-commit delivery and level-up check
"""

import asyncio
import json
from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.agents.catalog import AgentCatalog
from src.core.config.llm_providers import ProviderConfig
from src.core.config.settings import LLMSettings
from src.core.intelligence.llm.client import LLMClient, LLMError, LLMResponse
from src.core.intelligence.llm.fallback import ProviderChain
from src.core.prompts.fallbacks import TEACHER_FEEDBACK_TEXT, TEXT_SUMMARY_TEXT
from src.domains.learning.evaluation import FALLBACK_SCORE
from src.domains.learning.session_pipeline import (
    PracticeInput,
    SessionPipeline,
    SessionPipelineError,
)
from src.domains.user.service import UserNotFoundError
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import PracticeSession
from src.utils.datetime import utc_now

MANIFEST = Path(__file__).parents[3] / "config" / "agents" / "manifest.yaml"

EVALUATION = {
    "overall": 78,
    "pronunciation": 80,
    "fluency": 75,
    "grammar": 72,
    "vocabulary": 84,
    "feedback": {
        "pronunciation": ["Stress the first syllable of 'yesterday'."],
        "fluency": [],
        "grammar": ["Good use of the past simple."],
        "vocabulary": [],
        "overall": "Great job!",
    },
}


def reply(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="test-model", provider="openai")


@pytest.fixture
def ai(chat: MagicMock) -> MagicMock:
    async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
        if kwargs.get("json_mode"):
            return reply(json.dumps(EVALUATION))
        if system_prompt.startswith("Resumen"):
            return reply("Resumen: 78/100")
        return reply("Great job, María!")

    chat.complete = AsyncMock(side_effect=complete)
    return chat


@pytest.fixture
def storage() -> MagicMock:
    mock = MagicMock()
    mock.put = AsyncMock(return_value="https://cdn.example.com/feedback.mp3")
    return mock


@pytest.fixture
def learning() -> MagicMock:
    mock = MagicMock()
    mock.check_level_up_eligibility = AsyncMock()
    return mock


@pytest.fixture
def pipeline(registry, ai, storage, gateway, session_factory, learning) -> SessionPipeline:
    return SessionPipeline(
        AgentCatalog.build(MANIFEST, registry),
        registry,
        ai,
        storage,
        gateway,
        session_factory,
        learning,
        LLMSettings(evaluation_timeout=0.5),
    )


def practice(**overrides: Any) -> PracticeInput:
    values: dict[str, Any] = {
        "user_id": "user-1",
        "platform": "telegram",
        "text": "I went to the beach yesterday",
    }
    values.update(overrides)
    return PracticeInput(**values)


class TestSessionPipeline:
    """Tests for a committed practice session."""

    @pytest.mark.asyncio
    async def test_run(self, pipeline, session_factory, user) -> None:
        user.last_active_at = utc_now() - timedelta(days=1)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice(input_reference="voice/abc.ogg"))

        assert result.evaluation.overall == 78
        assert result.xp_earned == 20
        assert result.total_xp == 120
        assert result.streak == 3
        assert result.feedback_text == "Great job, María!"
        assert result.summary_text == "Resumen: 78/100"
        assert result.feedback_audio_url == "https://cdn.example.com/feedback.mp3"
        assert result.delivered is True

        records = session_factory.session.added_of(PracticeSession)
        assert len(records) == 1
        record = records[0]
        assert record.overall_score == 78
        assert record.grammar_score == 72
        assert record.word_count == 6
        assert record.input_reference == "voice/abc.ogg"
        assert record.feedback["overall"] == "Great job!"
        assert session_factory.commits == 1
        assert (type(user), user.id) in session_factory.session.locked

    @pytest.mark.asyncio
    async def test_hooks_deliver_and_check_level_up(
        self, pipeline, session_factory, gateway, learning, user
    ) -> None:
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())
        await pipeline.hooks.drain()

        gateway.send_message.assert_awaited_once_with(
            user.id,
            "telegram",
            audio_url=result.feedback_audio_url,
            text=result.summary_text,
        )
        learning.check_level_up_eligibility.assert_awaited_once_with(user.id)

    @pytest.mark.asyncio
    async def test_text_only_delivery_without_audio(
        self, pipeline, session_factory, gateway, ai, user
    ) -> None:
        ai.synthesize = AsyncMock(side_effect=LLMError("tts down"))
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())
        await pipeline.hooks.drain()

        assert result.feedback_audio_url is None
        gateway.send_message.assert_awaited_once_with(
            user.id, "telegram", text=result.reply_text
        )

    @pytest.mark.asyncio
    async def test_first_session_starts_streak(self, pipeline, session_factory, user) -> None:
        user.streak = 0
        user.last_active_at = None
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.streak == 1


class TestFallbacks:
    """Tests for degraded paths."""

    @pytest.mark.asyncio
    async def test_unparseable_evaluation(self, pipeline, session_factory, ai, user) -> None:
        original = ai.complete.side_effect

        async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                return reply("not json at all")
            return await original(system_prompt, messages, **kwargs)

        ai.complete = AsyncMock(side_effect=complete)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.evaluation.is_fallback is True
        assert result.evaluation.overall == FALLBACK_SCORE
        # 10 * 1.4 * 1.3 = 18.2
        assert result.xp_earned == 18

    @pytest.mark.asyncio
    async def test_evaluation_passes_deadline_down(
        self, pipeline, session_factory, ai, user
    ) -> None:
        original = ai.complete.side_effect

        async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                assert kwargs["timeout"] == 0.5
                raise LLMError("all providers timed out", error_code="providers_exhausted")
            return await original(system_prompt, messages, **kwargs)

        ai.complete = AsyncMock(side_effect=complete)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.evaluation.is_fallback is True

    @pytest.mark.asyncio
    async def test_out_of_range_scores(self, pipeline, session_factory, ai, user) -> None:
        ai.complete = AsyncMock(return_value=reply(json.dumps({**EVALUATION, "grammar": 140})))
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.evaluation.is_fallback is True
        assert result.evaluation.grammar == FALLBACK_SCORE

    @pytest.mark.asyncio
    async def test_feedback_texts_fall_back(self, pipeline, session_factory, ai, user) -> None:
        async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                return reply(json.dumps(EVALUATION))
            raise LLMError("providers down")

        ai.complete = AsyncMock(side_effect=complete)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.feedback_text == TEACHER_FEEDBACK_TEXT
        assert result.summary_text == TEXT_SUMMARY_TEXT
        assert result.evaluation.is_fallback is False

    @pytest.mark.asyncio
    async def test_failed_feedback_keeps_generated_summary(
        self, pipeline, session_factory, ai, user
    ) -> None:
        async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                return reply(json.dumps(EVALUATION))
            if system_prompt.startswith("Resumen"):
                return reply("Resumen: 78/100")
            raise LLMError("providers down")

        ai.complete = AsyncMock(side_effect=complete)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.feedback_text == TEACHER_FEEDBACK_TEXT
        assert result.summary_text == "Resumen: 78/100"

    @pytest.mark.asyncio
    async def test_failed_summary_keeps_generated_feedback(
        self, pipeline, session_factory, ai, user
    ) -> None:
        async def complete(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                return reply(json.dumps(EVALUATION))
            if system_prompt.startswith("Resumen"):
                raise LLMError("providers down")
            return reply("Great job, María!")

        ai.complete = AsyncMock(side_effect=complete)
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.feedback_text == "Great job, María!"
        assert result.summary_text == TEXT_SUMMARY_TEXT
        records = session_factory.session.added_of(PracticeSession)
        assert records[0].feedback_text == "Great job, María!"
        assert records[0].summary_text == TEXT_SUMMARY_TEXT


class TestProviderFallback:
    """Tests for evaluation across a provider chain."""

    @staticmethod
    def _client(code: str, complete: Any) -> MagicMock:
        client = MagicMock(spec=LLMClient)
        client.provider = ProviderConfig(code=code, api_key="k")
        client.supports_speech = True
        client.complete = AsyncMock(side_effect=complete)
        client.synthesize = AsyncMock(return_value=b"mp3-bytes")
        return client

    @pytest.mark.asyncio
    async def test_hanging_primary_falls_through_to_next_provider(
        self, registry, ai, storage, gateway, session_factory, learning, user
    ) -> None:
        async def hang(system_prompt: str, messages: Any, **kwargs: Any) -> LLMResponse:
            if kwargs.get("json_mode"):
                await asyncio.Event().wait()
            raise LLMError("down")

        google = self._client("google", hang)
        openai = self._client("openai", ai.complete.side_effect)
        chain = ProviderChain([google, openai], max_retries=1, sleep=AsyncMock())
        pipeline = SessionPipeline(
            AgentCatalog.build(MANIFEST, registry),
            registry,
            chain,
            storage,
            gateway,
            session_factory,
            learning,
            LLMSettings(evaluation_timeout=0.05),
        )
        session_factory.session.put(user)

        result = await pipeline.run(user, practice())

        assert result.evaluation.is_fallback is False
        assert result.evaluation.overall == 78
        assert result.feedback_text == "Great job, María!"
        assert openai.complete.call_args_list[0].kwargs["json_mode"] is True


class TestInputs:
    """Tests for input handling."""

    @pytest.mark.asyncio
    async def test_audio_is_transcribed(self, pipeline, session_factory, ai, user) -> None:
        session_factory.session.put(user)

        result = await pipeline.run(user, practice(text=None, audio=b"ogg-bytes"))

        ai.transcribe.assert_awaited_once_with(b"ogg-bytes")
        assert result.transcription == "I went to the beach yesterday"

    @pytest.mark.asyncio
    async def test_no_input(self, pipeline, user) -> None:
        with pytest.raises(SessionPipelineError):
            await pipeline.run(user, practice(text="   "))

    @pytest.mark.asyncio
    async def test_transcription_failure(self, pipeline, ai, session_factory, user) -> None:
        ai.transcribe = AsyncMock(side_effect=LLMError("whisper down"))

        with pytest.raises(SessionPipelineError) as exc_info:
            await pipeline.run(user, practice(text=None, audio=b"ogg-bytes"))

        assert isinstance(exc_info.value.original_error, LLMError)
        assert session_factory.session.added == []

    @pytest.mark.asyncio
    async def test_user_deleted_before_persist(self, pipeline, session_factory, user) -> None:
        with pytest.raises(UserNotFoundError):
            await pipeline.run(user, practice())

        assert session_factory.rollbacks == 1

    @pytest.mark.asyncio
    async def test_failed_persist_changes_nothing(
        self, pipeline, session_factory, gateway, user
    ) -> None:
        session_factory.session.put(user)
        session_factory.session.fail_on_flush = DatabaseError("insert failed")

        with pytest.raises(DatabaseError):
            await pipeline.run(user, practice())

        assert session_factory.rollbacks == 1
        assert session_factory.commits == 0
        assert pipeline.hooks.pending == 0
        assert user.xp == 100
        assert user.streak == 2
        gateway.send_message.assert_not_called()
