# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for placement-test scoring and answer extraction."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from src.core.config.llm_providers import ProviderConfig
from src.core.intelligence.llm.client import LLMClient, LLMError, LLMResponse
from src.core.intelligence.llm.fallback import ProviderChain
from src.domains.onboarding import scoring
from src.domains.onboarding.extraction import extract_interests, extract_learning_goal
from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.scoring import (
    AnswerScorer,
    assess_complexity,
    parse_grammar_score,
)


def reply(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="test-model", provider="openai")


@pytest.fixture
def question():
    return level_test_questions()[0]


class TestComplexity:
    """Tests for the complexity heuristic."""

    def test_short_sentences(self) -> None:
        assert assess_complexity("I like cats. I have two.") == 50

    def test_connectives(self) -> None:
        text = "I stayed home because it was raining, which was sad."

        assert assess_complexity(text) == 70

    def test_long_sentences_and_linking_words(self) -> None:
        text = (
            "However I think that technology has changed the way students learn "
            "in schools and universities all around the world."
        )

        assert assess_complexity(text) == 95

    def test_capped_at_100(self) -> None:
        text = (
            "However the report, which I read because it was required, shows that "
            "although progress is slow we should therefore keep working on it."
        )

        assert assess_complexity(text) == 100


class TestGrammarScore:
    """Tests for grammar scoring."""

    def test_parse(self) -> None:
        assert parse_grammar_score("85") == 85
        assert parse_grammar_score("Score: 150") == 100
        assert parse_grammar_score("-5") == 0

    def test_parse_without_number(self) -> None:
        with pytest.raises(ValueError):
            parse_grammar_score("very good")

    @pytest.mark.asyncio
    async def test_retries_with_linear_backoff(self, chat) -> None:
        chat.complete = AsyncMock(side_effect=[LLMError("down"), reply("no idea"), reply("85")])
        sleep = AsyncMock()
        scorer = AnswerScorer(chat, grammar_attempts=3, sleep=sleep)

        assert await scorer.score_grammar("I am a student.") == 85
        assert sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_default_after_all_attempts(self, chat) -> None:
        chat.complete = AsyncMock(side_effect=LLMError("down"))
        sleep = AsyncMock()
        scorer = AnswerScorer(chat, grammar_attempts=3, default_grammar_score=55, sleep=sleep)

        assert await scorer.score_grammar("I am a student.") == 55
        assert chat.complete.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_hanging_provider_falls_through_to_next(self) -> None:
        async def hang(*args: Any, **kwargs: Any) -> LLMResponse:
            await asyncio.Event().wait()

        google = MagicMock(spec=LLMClient)
        google.provider = ProviderConfig(code="google", api_key="k")
        google.complete = AsyncMock(side_effect=hang)
        openai = MagicMock(spec=LLMClient)
        openai.provider = ProviderConfig(code="openai", api_key="k")
        openai.complete = AsyncMock(return_value=reply("85"))
        chain = ProviderChain([google, openai], max_retries=1, sleep=AsyncMock())
        sleep = AsyncMock()
        scorer = AnswerScorer(chain, grammar_timeout=0.05, grammar_attempts=3, sleep=sleep)

        assert await scorer.score_grammar("I am a student.") == 85
        assert openai.complete.call_args.kwargs["timeout"] == 0.05
        sleep.assert_not_called()


class TestScoreResponse:
    """Tests for AnswerScorer.score_response."""

    @pytest.mark.asyncio
    async def test_scores(self, chat, question) -> None:
        chat.complete = AsyncMock(return_value=reply("90"))
        scorer = AnswerScorer(chat, sleep=AsyncMock())

        evaluation = await scorer.score_response(
            "I am Ana and I am from Madrid and I like music", question
        )

        assert evaluation.word_count == 12
        assert evaluation.length == 60
        assert evaluation.complexity == 60
        assert evaluation.grammar == 90
        assert evaluation.overall == 70

    @pytest.mark.asyncio
    async def test_length_is_capped(self, chat, question) -> None:
        chat.complete = AsyncMock(return_value=reply("80"))
        scorer = AnswerScorer(chat, sleep=AsyncMock())

        evaluation = await scorer.score_response("word " * 50, question)

        assert evaluation.length == 100

    @pytest.mark.asyncio
    async def test_fallback_on_scoring_error(self, chat, question, monkeypatch) -> None:
        def broken(text: str) -> int:
            raise RuntimeError("bad input")

        monkeypatch.setattr(scoring, "assess_complexity", broken)
        scorer = AnswerScorer(chat, fallback_score=60)

        evaluation = await scorer.score_response("Hello there", question)

        assert evaluation.overall == 60
        assert evaluation.grammar == 60
        assert evaluation.word_count == 2


class TestQuestions:
    """Tests for the placement-test question set."""

    def test_one_question_per_level(self) -> None:
        questions = level_test_questions()

        assert [q.level for q in questions] == ["A1", "A2", "B1", "B2", "C1"]
        assert [q.expected_length for q in questions] == [20, 40, 60, 80, 100]

    def test_returns_fresh_copies(self) -> None:
        first = level_test_questions()
        first[0].question = "changed"

        assert level_test_questions()[0].question != "changed"


class TestExtraction:
    """Tests for interest and goal extraction."""

    def test_interests_in_map_order(self) -> None:
        assert extract_interests("I love cooking and watching films") == ["movies", "food"]

    def test_interests_default(self) -> None:
        assert extract_interests("nothing in particular") == ["general"]

    def test_interests_are_case_insensitive(self) -> None:
        assert extract_interests("FOOTBALL and Jazz MUSIC") == ["sports", "music"]

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I need English for my career", "business"),
            ("I want to travel to London", "travel"),
            ("I will study at a university in Canada", "academic"),
            ("I want better speaking skills", "conversation"),
            ("Just for fun", "general"),
        ],
    )
    def test_learning_goal(self, text: str, expected: str) -> None:
        assert extract_learning_goal(text) == expected
