# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Onboarding state models.

OnboardingState is what the StateStore caches in Redis. It validates on
the way in, so a corrupt or foreign cache entry reads as missing.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from src.utils.datetime import utc_now


class OnboardingStep(str, Enum):
    """Onboarding steps, strictly forward."""

    WELCOME = "welcome"
    LEVEL_TEST = "level_test"
    INTERESTS = "interests"
    GOAL = "goal"
    COMPLETE = "complete"


class PlacementQuestion(BaseModel):
    """One placement-test question."""

    level: str
    question: str
    expected_length: int = Field(gt=0)
    criteria: list[str] = Field(default_factory=list)


class ResponseEvaluation(BaseModel):
    """Scores for one placement-test answer."""

    overall: int
    length: int
    complexity: int
    grammar: int
    word_count: int


class PlacementAnswer(BaseModel):
    """An answered placement-test question."""

    question: PlacementQuestion
    transcription: str
    evaluation: ResponseEvaluation
    timestamp: datetime = Field(default_factory=utc_now)


class OnboardingState(BaseModel):
    """Per-user progress through onboarding.

    Attributes:
        step: Current step.
        questions: Placement-test questions (level_test only).
        cursor: Index of the question being answered.
        responses: Answers collected so far.
        temp_level: Level determined by the test.
        interests: Collected interest categories.
        goal: Collected learning goal.
    """

    step: OnboardingStep
    questions: list[PlacementQuestion] = Field(default_factory=list)
    cursor: int = Field(default=0, ge=0)
    responses: list[PlacementAnswer] = Field(default_factory=list)
    temp_level: Optional[str] = None
    interests: list[str] = Field(default_factory=list)
    goal: Optional[str] = None
    started_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self) -> "OnboardingState":
        """Mark the state as updated now."""
        self.updated_at = utc_now()
        return self
