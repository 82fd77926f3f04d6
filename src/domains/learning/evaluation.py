# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured speech evaluation.

A SpeechEvaluation either validates completely or is replaced wholesale
by SpeechEvaluation.fallback(); scores are never mixed between the two.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.domains.learning.rules import round_half_up

FALLBACK_SCORE = 70

_FALLBACK_FEEDBACK = {
    "pronunciation": ["Keep practicing your pronunciation by speaking out loud every day."],
    "fluency": ["Try to speak in longer sentences without stopping."],
    "grammar": ["Review the verb tenses you used and keep practicing."],
    "vocabulary": ["Try to use a few new words in your next message."],
    "overall": "Good effort! Keep practicing and you will keep improving.",
}


class EvaluationFeedback(BaseModel):
    """Per-category feedback points plus an overall comment."""

    pronunciation: list[str] = Field(default_factory=list)
    fluency: list[str] = Field(default_factory=list)
    grammar: list[str] = Field(default_factory=list)
    vocabulary: list[str] = Field(default_factory=list)
    overall: str = ""

    @field_validator("pronunciation", "fluency", "grammar", "vocabulary", mode="before")
    @classmethod
    def _wrap_single(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class SpeechEvaluation(BaseModel):
    """Scores (0-100) for one utterance with feedback."""

    overall: int = Field(ge=0, le=100)
    pronunciation: int = Field(ge=0, le=100)
    fluency: int = Field(ge=0, le=100)
    grammar: int = Field(ge=0, le=100)
    vocabulary: int = Field(ge=0, le=100)
    feedback: EvaluationFeedback = Field(default_factory=EvaluationFeedback)
    is_fallback: bool = Field(default=False, exclude=True)

    @field_validator("overall", "pronunciation", "fluency", "grammar", "vocabulary", mode="before")
    @classmethod
    def _round_scores(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round_half_up(value)
        return value

    @classmethod
    def fallback(cls) -> "SpeechEvaluation":
        """The fixed neutral evaluation used when evaluation fails."""
        return cls(
            overall=FALLBACK_SCORE,
            pronunciation=FALLBACK_SCORE,
            fluency=FALLBACK_SCORE,
            grammar=FALLBACK_SCORE,
            vocabulary=FALLBACK_SCORE,
            feedback=EvaluationFeedback(**_FALLBACK_FEEDBACK),
            is_fallback=True,
        )

    def score_columns(self) -> dict[str, int]:
        """Scores keyed by PracticeSession column name."""
        return {
            "overall_score": self.overall,
            "pronunciation_score": self.pronunciation,
            "fluency_score": self.fluency,
            "grammar_score": self.grammar,
            "vocabulary_score": self.vocabulary,
        }
