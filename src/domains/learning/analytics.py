# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress analytics and level-up assessment over practice sessions.

These functions are pure: they take score records ordered as described
and return plain dataclasses, so they are reused by the service layer
and the after-commit level-up hook.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from src.domains.learning.cefr import next_level
from src.domains.learning.rules import round_half_up

SKILLS = ("pronunciation", "fluency", "grammar", "vocabulary")

MIN_SESSIONS_FOR_LEVEL_UP = 8
CONSISTENCY_WINDOW = 5
CONSISTENCY_MIN_SCORE = 70
NEXT_LEVEL_BUFFER = 5
STRENGTH_THRESHOLD = 75
WEAKNESS_THRESHOLD = 60


class ScoredSession(Protocol):
    overall_score: int
    pronunciation_score: int
    fluency_score: int
    grammar_score: int
    vocabulary_score: int


@dataclass
class LevelUpAssessment:
    """Whether a user may take a level-up test."""

    eligible: bool
    reason: str
    current_level: str
    next_level: Optional[str] = None
    average_score: Optional[int] = None
    required_score: Optional[int] = None
    sessions_needed: int = 0


@dataclass
class ProgressSummary:
    """Aggregate view of a user's recent practice."""

    total_sessions: int
    average_scores: dict[str, int] = field(default_factory=dict)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    improvement_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sessions": self.total_sessions,
            "average_scores": dict(self.average_scores),
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "improvement_rate": self.improvement_rate,
        }


def _average(values: Sequence[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def assess_level_up(current_level: str, recent: Sequence[ScoredSession]) -> LevelUpAssessment:
    """Assess level-up eligibility.

    Args:
        current_level: User's CEFR level.
        recent: Recent daily-practice sessions, newest first.

    Returns:
        LevelUpAssessment.
    """
    if len(recent) < MIN_SESSIONS_FOR_LEVEL_UP:
        return LevelUpAssessment(
            eligible=False,
            reason=(
                f"Need at least {MIN_SESSIONS_FOR_LEVEL_UP} practice sessions "
                "in the last 30 days"
            ),
            current_level=current_level,
            sessions_needed=MIN_SESSIONS_FOR_LEVEL_UP - len(recent),
        )

    target = next_level(current_level)
    if target is None:
        return LevelUpAssessment(
            eligible=False,
            reason="Already at maximum level",
            current_level=current_level,
        )

    average = sum(s.overall_score for s in recent) / len(recent)
    consistent = all(
        s.overall_score >= CONSISTENCY_MIN_SCORE for s in recent[:CONSISTENCY_WINDOW]
    )
    required = target.min_score - NEXT_LEVEL_BUFFER
    eligible = consistent and average >= required

    return LevelUpAssessment(
        eligible=eligible,
        reason=(
            "Ready for level-up test!"
            if eligible
            else f"Need average score of {required}+ with consistent performance"
        ),
        current_level=current_level,
        next_level=target.code,
        average_score=round_half_up(average),
        required_score=required,
    )


def improvement_rate(chronological: Sequence[ScoredSession]) -> int:
    """Percent change between the first and last quarter of sessions.

    Args:
        chronological: Sessions oldest first.

    Returns:
        Rounded percentage, 0 with fewer than 4 sessions.
    """
    if len(chronological) < 4:
        return 0
    quarter = len(chronological) // 4
    first = sum(s.overall_score for s in chronological[:quarter]) / quarter
    last = sum(s.overall_score for s in chronological[-quarter:]) / quarter
    if first == 0:
        return 0
    return round_half_up((last - first) / first * 100)


def summarize_progress(chronological: Sequence[ScoredSession]) -> ProgressSummary:
    """Summarize per-skill averages, strengths and weaknesses.

    Args:
        chronological: Sessions oldest first.

    Returns:
        ProgressSummary.
    """
    averages = {"overall": _average([s.overall_score for s in chronological])}
    for skill in SKILLS:
        averages[skill] = _average([getattr(s, f"{skill}_score") for s in chronological])

    return ProgressSummary(
        total_sessions=len(chronological),
        average_scores=averages,
        strengths=[skill for skill in SKILLS if averages[skill] >= STRENGTH_THRESHOLD],
        weaknesses=[
            skill
            for skill in SKILLS
            if chronological and averages[skill] < WEAKNESS_THRESHOLD
        ],
        improvement_rate=improvement_rate(chronological),
    )
