# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Placement-test questions, one per level from A1 to C1."""

from src.domains.onboarding.state import PlacementQuestion

_QUESTIONS: tuple[dict, ...] = (
    {
        "level": "A1",
        "question": (
            "Please introduce yourself. Tell me your name, where you're from, "
            "and one thing you enjoy doing."
        ),
        "expected_length": 20,
        "criteria": ["basic_vocabulary", "simple_sentences"],
    },
    {
        "level": "A2",
        "question": "Describe your typical day. What do you usually do from morning to evening?",
        "expected_length": 40,
        "criteria": ["present_tense", "time_expressions", "daily_activities"],
    },
    {
        "level": "B1",
        "question": (
            "Tell me about a memorable trip or experience you've had. "
            "What happened and how did you feel?"
        ),
        "expected_length": 60,
        "criteria": ["past_tense", "emotions", "narrative_structure"],
    },
    {
        "level": "B2",
        "question": (
            "What do you think about the impact of technology on education? "
            "Give your opinion and examples."
        ),
        "expected_length": 80,
        "criteria": ["opinion_expression", "complex_sentences", "examples"],
    },
    {
        "level": "C1",
        "question": (
            "Discuss a global issue that concerns you and propose some solutions. "
            "Explain your reasoning."
        ),
        "expected_length": 100,
        "criteria": ["abstract_concepts", "argumentation", "complex_vocabulary"],
    },
)


def level_test_questions() -> list[PlacementQuestion]:
    """Fresh copies of the placement-test questions, easiest first."""
    return [PlacementQuestion(**question) for question in _QUESTIONS]
