# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Keyword extraction of interests and learning goals.

Plain substring matching on the lowercased answer. Coarse by intent:
no synonyms beyond the lists below and English keywords only.
"""

INTEREST_KEYWORDS: dict[str, tuple[str, ...]] = {
    "technology": ("technology", "tech", "computer", "software", "programming", "coding"),
    "movies": ("movies", "films", "cinema", "entertainment", "tv", "series"),
    "sports": ("sports", "football", "soccer", "basketball", "tennis", "running", "gym"),
    "food": ("food", "cooking", "cuisine", "recipes", "restaurant", "eating"),
    "travel": ("travel", "tourism", "countries", "places", "vacation", "trip"),
    "business": ("business", "work", "career", "finance", "marketing", "management"),
    "music": ("music", "songs", "concert", "band", "singing", "instruments"),
    "books": ("books", "reading", "literature", "novels", "stories", "writing"),
}

DEFAULT_INTERESTS = ("general",)

# Checked in order; the first match wins
GOAL_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("business", ("career", "business", "work")),
    ("travel", ("travel", "tourism")),
    ("academic", ("academic", "study", "university")),
    ("conversation", ("conversation", "speaking")),
)

DEFAULT_GOAL = "general"


def extract_interests(text: str) -> list[str]:
    """Interest categories mentioned in the text, in map order.

    Example:
        >>> extract_interests("I love cooking and watching films")
        ['movies', 'food']
    """
    lowered = text.lower()
    found = [
        interest
        for interest, keywords in INTEREST_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]
    return found or list(DEFAULT_INTERESTS)


def extract_learning_goal(text: str) -> str:
    """Classify the learning goal of an answer.

    Example:
        >>> extract_learning_goal("I need English for my career")
        'business'
    """
    lowered = text.lower()
    for goal, keywords in GOAL_RULES:
        if any(keyword in lowered for keyword in keywords):
            return goal
    return DEFAULT_GOAL
