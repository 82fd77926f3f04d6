# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CEFR proficiency levels and score bands."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CEFRLevel:
    """One CEFR band with an inclusive score range."""

    code: str
    name: str
    description: str
    min_score: int
    max_score: int

    def contains(self, score: float) -> bool:
        return self.min_score <= score <= self.max_score


CEFR_LEVELS: tuple[CEFRLevel, ...] = (
    CEFRLevel("A0", "Beginner", "Complete beginner", 0, 20),
    CEFRLevel("A1", "Elementary", "Basic words and phrases", 21, 35),
    CEFRLevel("A2", "Pre-intermediate", "Simple conversations", 36, 50),
    CEFRLevel("B1", "Intermediate", "Independent user", 51, 65),
    CEFRLevel("B2", "Upper-intermediate", "Complex topics", 66, 80),
    CEFRLevel("C1", "Advanced", "Proficient user", 81, 92),
    CEFRLevel("C2", "Mastery", "Near-native fluency", 93, 100),
)

LEVEL_CODES: tuple[str, ...] = tuple(level.code for level in CEFR_LEVELS)

# Averages that land between two bands (e.g. 20.5) fall back to this level
FALLBACK_LEVEL = "A1"

_BY_CODE = {level.code: level for level in CEFR_LEVELS}


def get_level(code: str) -> Optional[CEFRLevel]:
    """Look up a level by its code, or None if unknown."""
    return _BY_CODE.get(code)


def level_for_score(score: float) -> str:
    """Map an average score to the CEFR band containing it.

    Args:
        score: Average score in 0..100.

    Returns:
        Level code; FALLBACK_LEVEL if no band contains the score.
    """
    for level in CEFR_LEVELS:
        if level.contains(score):
            return level.code
    return FALLBACK_LEVEL


def next_level(code: str) -> Optional[CEFRLevel]:
    """Get the level above the given one, or None at the top."""
    current = get_level(code)
    ceiling = current.max_score if current else 0
    for level in CEFR_LEVELS:
        if level.min_score > ceiling:
            return level
    return None


def describe_level(code: str) -> str:
    """Human-readable "Name - description" for a level code."""
    level = get_level(code)
    if level is None:
        return code
    return f"{level.name} - {level.description}"
