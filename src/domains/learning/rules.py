# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""XP and streak rules.

XP for a session:

    max(1, round(10 * score_mult * type_mult * level_mult + duration_bonus))

where score_mult = clamp(score / 50, 0.5, 2), type_mult and level_mult
come from the tables below and the duration bonus is 2 XP per full
minute for sessions longer than a minute.

Streak after a session, by UTC calendar days since the last activity:
first activity -> 1, gap 0 -> unchanged, gap 1 -> +1, gap > 1 -> 1.
"""

import math
from datetime import datetime
from typing import Optional

from src.utils.datetime import calendar_days_between

BASE_XP = 10

SESSION_TYPE_MULTIPLIERS: dict[str, float] = {
    "daily_practice": 1.0,
    "level_test": 2.0,
    "challenge": 1.5,
}

LEVEL_MULTIPLIERS: dict[str, float] = {
    "A0": 1.0,
    "A1": 1.1,
    "A2": 1.2,
    "B1": 1.3,
    "B2": 1.4,
    "C1": 1.5,
    "C2": 1.6,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def score_multiplier(score: float) -> float:
    """clamp(score / 50, 0.5, 2)."""
    return max(0.5, min(2.0, score / 50))


def calculate_xp(
    score: float,
    level: str,
    session_type: str = "daily_practice",
    duration_seconds: Optional[float] = None,
) -> int:
    """Calculate XP earned for a practice session.

    Args:
        score: Overall session score (0-100).
        level: User's CEFR level code.
        session_type: Session type tag.
        duration_seconds: Utterance duration, if known.

    Returns:
        XP earned, at least 1.

    Example:
        >>> calculate_xp(78, "B1")
        20
    """
    duration = duration_seconds or 0
    duration_bonus = math.floor(duration / 60) * 2 if duration > 60 else 0

    raw = (
        BASE_XP
        * score_multiplier(score)
        * SESSION_TYPE_MULTIPLIERS.get(session_type, 1.0)
        * LEVEL_MULTIPLIERS.get(level, 1.0)
        + duration_bonus
    )
    return max(1, round_half_up(raw))


def next_streak(previous_streak: int, days_since_last_activity: Optional[int]) -> int:
    """Apply the day-gap rule to a streak.

    Args:
        previous_streak: Streak before this session.
        days_since_last_activity: Calendar-day gap, None for first activity.

    Returns:
        The new streak.
    """
    if days_since_last_activity is None:
        return 1
    if days_since_last_activity == 0:
        return previous_streak
    if days_since_last_activity == 1:
        return previous_streak + 1
    return 1


def update_streak(
    previous_streak: int,
    last_active_at: Optional[datetime],
    now: datetime,
) -> int:
    """Compute the new streak from the last activity timestamp.

    Args:
        previous_streak: Streak before this session.
        last_active_at: Last activity, or None for a first session.
        now: Time of this session.

    Returns:
        The new streak.
    """
    return next_streak(previous_streak, calendar_days_between(last_active_at, now))
