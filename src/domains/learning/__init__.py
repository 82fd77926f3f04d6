# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning domain.

Practice sessions and everything scored from them:

- cefr: CEFR bands and score-to-level mapping
- rules: XP and streak arithmetic
- evaluation: structured speech evaluation with a fixed fallback
- session_pipeline: transcribe, evaluate, feedback, persist, deliver
- hooks: after-commit side effects
- analytics / service: progress summaries and level-up eligibility
"""

from src.domains.learning.analytics import (
    LevelUpAssessment,
    ProgressSummary,
    assess_level_up,
    summarize_progress,
)
from src.domains.learning.cefr import CEFR_LEVELS, CEFRLevel, level_for_score, next_level
from src.domains.learning.evaluation import EvaluationFeedback, SpeechEvaluation
from src.domains.learning.hooks import AfterCommitHooks
from src.domains.learning.rules import calculate_xp, next_streak, update_streak
from src.domains.learning.service import LearningService
from src.domains.learning.session_pipeline import (
    PracticeInput,
    PracticeResult,
    SessionPipeline,
    SessionPipelineError,
)

__all__ = [
    "AfterCommitHooks",
    "CEFRLevel",
    "CEFR_LEVELS",
    "EvaluationFeedback",
    "LearningService",
    "LevelUpAssessment",
    "PracticeInput",
    "PracticeResult",
    "ProgressSummary",
    "SessionPipeline",
    "SessionPipelineError",
    "SpeechEvaluation",
    "assess_level_up",
    "calculate_xp",
    "level_for_score",
    "next_level",
    "next_streak",
    "summarize_progress",
    "update_streak",
]
