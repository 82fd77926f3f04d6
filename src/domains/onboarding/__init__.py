# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Onboarding domain.

New users go through a five-question placement test, then tell us their
interests and learning goal. Progress survives cache loss through a
minimal database backup.
"""

from src.domains.onboarding.extraction import extract_interests, extract_learning_goal
from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.scoring import AnswerScorer, assess_complexity
from src.domains.onboarding.service import (
    InvalidOnboardingStepError,
    OnboardingResult,
    OnboardingStateMachine,
)
from src.domains.onboarding.state import (
    OnboardingState,
    OnboardingStep,
    PlacementAnswer,
    PlacementQuestion,
    ResponseEvaluation,
)
from src.domains.onboarding.state_store import OnboardingStateError, OnboardingStateStore

__all__ = [
    "AnswerScorer",
    "InvalidOnboardingStepError",
    "OnboardingResult",
    "OnboardingState",
    "OnboardingStateError",
    "OnboardingStateMachine",
    "OnboardingStateStore",
    "OnboardingStep",
    "PlacementAnswer",
    "PlacementQuestion",
    "ResponseEvaluation",
    "assess_complexity",
    "extract_interests",
    "extract_learning_goal",
    "level_test_questions",
]
