# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Placement-test answer scoring.

Three scores per answer, each 0-100:
- length: words relative to the question's expected length,
- complexity: local heuristic on sentence length and connectives,
- grammar: one LLM call, retried with a linear backoff.

The overall score is their rounded mean.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable

from src.core.intelligence.llm.client import Message
from src.core.intelligence.llm.interfaces import ChatCompletionService
from src.domains.learning.rules import round_half_up
from src.domains.onboarding.state import PlacementQuestion, ResponseEvaluation
from src.utils.text import count_words

logger = logging.getLogger(__name__)

GRAMMAR_SYSTEM_PROMPT = (
    "You are an English grammar evaluator. Rate the grammar quality of the given text "
    "on a scale of 0-100. Consider sentence structure, verb tenses, subject-verb "
    "agreement, and overall grammatical correctness. Respond only with a number."
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_INTEGER = re.compile(r"-?\d+")

# (markers, bonus) pairs; each group counts once
_COMPLEXITY_MARKERS: tuple[tuple[tuple[str, ...], int], ...] = (
    ((" which ", " that "), 10),
    ((" because ", " although "), 10),
    ((" however ", " therefore "), 15),
)


def assess_complexity(text: str) -> int:
    """Score the structural complexity of an answer.

    Base 50, +20 for an average sentence over 15 words (+10 over 10),
    plus bonuses for subordinate and linking words, capped at 100.
    """
    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    average_words = count_words(text) / max(1, len(sentences))

    score = 50
    if average_words > 15:
        score += 20
    elif average_words > 10:
        score += 10

    padded = f" {text.lower()} "
    for markers, bonus in _COMPLEXITY_MARKERS:
        if any(marker in padded for marker in markers):
            score += bonus

    return min(100, score)


def parse_grammar_score(content: str) -> int:
    """Extract the first integer from a reply, clamped to 0..100.

    Raises:
        ValueError: If the reply contains no integer.
    """
    match = _INTEGER.search(content or "")
    if match is None:
        raise ValueError(f"No score in grammar reply: {content!r}")
    return max(0, min(100, int(match.group(0))))


class AnswerScorer:
    """Scores placement-test answers.

    Attributes:
        grammar_timeout: Deadline of each provider call in seconds.
        grammar_attempts: Maximum grammar attempts.
        default_grammar_score: Grammar score when every attempt fails.
        fallback_score: Every score when scoring itself fails.
    """

    def __init__(
        self,
        chat: ChatCompletionService,
        grammar_timeout: float = 10.0,
        grammar_attempts: int = 3,
        default_grammar_score: int = 60,
        fallback_score: int = 60,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._chat = chat
        self.grammar_timeout = grammar_timeout
        self.grammar_attempts = max(1, grammar_attempts)
        self.default_grammar_score = default_grammar_score
        self.fallback_score = fallback_score
        self._backoff = backoff_seconds
        self._sleep = sleep

    async def score_grammar(self, text: str) -> int:
        """Grammar score from the LLM, or the default after all attempts fail."""
        for attempt in range(1, self.grammar_attempts + 1):
            try:
                response = await self._chat.complete(
                    GRAMMAR_SYSTEM_PROMPT,
                    [Message("user", text)],
                    temperature=0.1,
                    max_tokens=10,
                    timeout=self.grammar_timeout,
                )
                return parse_grammar_score(response.content)
            except Exception as e:
                logger.warning("Grammar evaluation attempt %d failed: %s", attempt, e)
                if attempt < self.grammar_attempts:
                    await self._sleep(self._backoff * attempt)

        logger.error("All grammar evaluation attempts failed, using default score")
        return self.default_grammar_score

    async def score_response(
        self, transcription: str, question: PlacementQuestion
    ) -> ResponseEvaluation:
        """Score one answer against its question.

        Args:
            transcription: The answer text.
            question: The question being answered.

        Returns:
            ResponseEvaluation; all scores equal fallback_score if scoring fails.
        """
        word_count = count_words(transcription)
        try:
            length = min(100.0, word_count / question.expected_length * 100)
            complexity = assess_complexity(transcription)
            grammar = await self.score_grammar(transcription)
            overall = (length + complexity + grammar) / 3
            return ResponseEvaluation(
                overall=round_half_up(overall),
                length=round_half_up(length),
                complexity=complexity,
                grammar=grammar,
                word_count=word_count,
            )
        except Exception as e:
            logger.error("Error evaluating placement answer: %s", e)
            return self._fallback(word_count)

    def _fallback(self, word_count: int) -> ResponseEvaluation:
        return ResponseEvaluation(
            overall=self.fallback_score,
            length=self.fallback_score,
            complexity=self.fallback_score,
            grammar=self.fallback_score,
            word_count=word_count,
        )
