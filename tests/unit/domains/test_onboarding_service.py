# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the onboarding state machine.

Tests cover:
- The forward path welcome -> level_test -> interests -> goal -> complete
- Restart when the state is lost
- Recovery notices on failures
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.onboarding import messages
from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.scoring import AnswerScorer
from src.domains.onboarding.service import OnboardingStateMachine
from src.domains.onboarding.state import (
    OnboardingState,
    OnboardingStep,
    PlacementAnswer,
    ResponseEvaluation,
)
from src.domains.onboarding.state_store import OnboardingStateStore, state_key
from src.domains.user.service import UnsupportedPlatformError
from src.infrastructure.database.models import LevelTest


def evaluation(overall: int) -> ResponseEvaluation:
    return ResponseEvaluation(
        overall=overall, length=overall, complexity=overall, grammar=overall, word_count=30
    )


@pytest.fixture
def store(cache, session_factory) -> OnboardingStateStore:
    return OnboardingStateStore(cache, session_factory)


@pytest.fixture
def scorer() -> MagicMock:
    mock = MagicMock(spec=AnswerScorer)
    mock.score_response = AsyncMock(return_value=evaluation(60))
    return mock


@pytest.fixture
def transcriber() -> MagicMock:
    async def to_text(input_type: str, content: str) -> str:
        return "My name is Lucía and I am from Sevilla" if input_type == "audio" else content

    mock = MagicMock()
    mock.to_text = AsyncMock(side_effect=to_text)
    return mock


@pytest.fixture
def machine(store, scorer, transcriber, gateway, session_factory) -> OnboardingStateMachine:
    return OnboardingStateMachine(store, scorer, transcriber, gateway, session_factory)


def sent_texts(gateway: MagicMock) -> list[str]:
    return [call.kwargs["text"] for call in gateway.send_message.await_args_list]


async def at_step(store: OnboardingStateStore, user: Any, state: OnboardingState) -> None:
    await store.put(user.id, state)
    user.onboarding_step = state.step.value


class TestWelcome:
    """Tests for the welcome step."""

    @pytest.mark.asyncio
    async def test_starts_level_test(self, machine, cache, gateway, onboarding_user) -> None:
        result = await machine.process(onboarding_user, "/start", "telegram")

        assert result.success is True
        assert result.next_step == "level_test"
        assert onboarding_user.onboarding_step == "level_test"

        cached = cache.data[state_key(onboarding_user.id)]
        assert cached["step"] == "level_test"
        assert cached["cursor"] == 0
        assert len(cached["questions"]) == 5

        [text] = sent_texts(gateway)
        assert text.startswith("¡Hola María!")
        assert level_test_questions()[0].question in text


class TestLevelTest:
    """Tests for the placement test."""

    @pytest.mark.asyncio
    async def test_next_question(self, machine, store, scorer, gateway, onboarding_user) -> None:
        await machine.process(onboarding_user, "/start", "telegram")
        gateway.send_message.reset_mock()

        result = await machine.process(
            onboarding_user, "Hi, I am María from Madrid and I like music", "telegram"
        )

        assert result.next_step == "level_test"
        state = await store.get(onboarding_user.id)
        assert state.cursor == 1
        assert len(state.responses) == 1
        question = scorer.score_response.await_args.args[1]
        assert question.level == "A1"
        assert sent_texts(gateway) == [
            messages.next_question_message(level_test_questions()[1].question)
        ]

    @pytest.mark.asyncio
    async def test_audio_answer_is_transcribed(
        self, machine, scorer, transcriber, onboarding_user
    ) -> None:
        await machine.process(onboarding_user, "/start", "telegram")

        await machine.process(onboarding_user, "voice/abc.ogg", "telegram", "audio")

        transcriber.to_text.assert_awaited_with("audio", "voice/abc.ogg")
        answer = scorer.score_response.await_args.args[0]
        assert answer == "My name is Lucía and I am from Sevilla"

    @pytest.mark.asyncio
    async def test_last_answer_sets_level(
        self, machine, store, session_factory, gateway, onboarding_user
    ) -> None:
        questions = level_test_questions()
        state = OnboardingState(
            step=OnboardingStep.LEVEL_TEST,
            questions=questions,
            cursor=4,
            responses=[
                PlacementAnswer(question=q, transcription="answer", evaluation=evaluation(60))
                for q in questions[:4]
            ],
        )
        await at_step(store, onboarding_user, state)

        result = await machine.process(onboarding_user, "Climate change is...", "whatsapp")

        assert result.success is True
        assert result.next_step == "interests"
        assert result.level == "B1"
        assert onboarding_user.level == "B1"
        assert onboarding_user.onboarding_step == "interests"

        [test] = session_factory.session.added_of(LevelTest)
        assert test.result_level == "B1"
        assert test.overall_score == 60
        assert len(test.responses) == 5
        assert test.completed is True

        saved = await store.get(onboarding_user.id)
        assert saved.step is OnboardingStep.INTERESTS
        assert saved.temp_level == "B1"
        assert "B1" in sent_texts(gateway)[-1]

    @pytest.mark.asyncio
    async def test_lost_state_restarts(self, machine, cache, gateway, onboarding_user) -> None:
        onboarding_user.onboarding_step = "level_test"
        onboarding_user.onboarding_updated_at = None

        result = await machine.process(onboarding_user, "My answer", "telegram")

        assert result.success is True
        assert result.next_step == "level_test"
        texts = sent_texts(gateway)
        assert texts[0] == messages.restart_message("María")
        assert level_test_questions()[0].question in texts[1]
        assert cache.data[state_key(onboarding_user.id)]["cursor"] == 0

    @pytest.mark.asyncio
    async def test_scoring_failure_sends_recovery(
        self, machine, scorer, gateway, onboarding_user
    ) -> None:
        await machine.process(onboarding_user, "/start", "telegram")
        gateway.send_message.reset_mock()
        scorer.score_response = AsyncMock(side_effect=RuntimeError("boom"))

        result = await machine.process(onboarding_user, "answer", "telegram")

        assert result.success is False
        assert result.next_step == "level_test"
        assert sent_texts(gateway) == [messages.recovery_message("level_test")]


class TestProfileSteps:
    """Tests for the interests and goal steps."""

    @pytest.mark.asyncio
    async def test_interests(self, machine, store, gateway, onboarding_user) -> None:
        state = OnboardingState(step=OnboardingStep.INTERESTS, temp_level="B1")
        await at_step(store, onboarding_user, state)

        result = await machine.process(onboarding_user, "I love music and travel", "telegram")

        assert result.next_step == "goal"
        assert result.interests == ["travel", "music"]
        assert onboarding_user.interests == ["travel", "music"]
        assert onboarding_user.onboarding_step == "goal"
        assert (await store.get(onboarding_user.id)).step is OnboardingStep.GOAL
        assert sent_texts(gateway) == [messages.goal_question_message(["travel", "music"])]

    @pytest.mark.asyncio
    async def test_goal_completes(self, machine, store, cache, gateway, onboarding_user) -> None:
        onboarding_user.level = "B1"
        onboarding_user.interests = ["travel"]
        await at_step(store, onboarding_user, OnboardingState(step=OnboardingStep.GOAL))

        result = await machine.process(
            onboarding_user, "I need English for my career", "telegram"
        )

        assert result.next_step == "complete"
        assert result.goal == "business"
        assert onboarding_user.is_onboarding is False
        assert onboarding_user.onboarding_step == "complete"
        assert onboarding_user.learning_goal == "business"
        assert state_key(onboarding_user.id) not in cache.data
        assert sent_texts(gateway) == [messages.completion_message("B1", ["travel"], "business")]


class TestGuards:
    """Tests for the entry checks."""

    @pytest.mark.asyncio
    async def test_already_complete(self, machine, gateway, user) -> None:
        result = await machine.process(user, "Hello", "telegram")

        assert result.success is True
        assert result.next_step == "complete"
        gateway.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, machine, onboarding_user) -> None:
        with pytest.raises(UnsupportedPlatformError):
            await machine.process(onboarding_user, "Hello", "sms")

    @pytest.mark.asyncio
    async def test_unknown_step(self, machine, gateway, onboarding_user) -> None:
        onboarding_user.onboarding_step = "dancing"

        result = await machine.process(onboarding_user, "Hello", "telegram")

        assert result.success is False
        assert sent_texts(gateway) == [messages.recovery_message("dancing")]
