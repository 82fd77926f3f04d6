# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversation turn workflow state.

One state object flows through a single turn:
route -> (practice_session | respond) -> END.
"""

from typing import Literal, TypedDict

from src.domains.conversation.store import Turn
from src.domains.learning.session_pipeline import PracticeResult
from src.infrastructure.database.models import User


class ConversationState(TypedDict, total=False):
    """State for one routed conversation turn.

    Attributes:
        # Input
        user: The user sending the message.
        platform: Platform the reply goes to.
        message: User message text (already transcribed).
        input_reference: Blob reference of the original audio, if any.
        duration_seconds: Audio duration, if known.
        history: Previous turns, oldest first.

        # Routing
        agent: Selected catalog agent name.
        reasoning: Router reasoning, logged only.
        decision_source: short_circuit, router or fallback.

        # Output
        reply: Text reply for the user.
        delivered: True when the reply was already sent by the agent path.
        practice_result: Result of a practice session, if one ran.
    """

    user: User
    platform: str
    message: str
    input_reference: str | None
    duration_seconds: float | None
    history: list[Turn]

    agent: str
    reasoning: str
    decision_source: Literal["short_circuit", "router", "fallback"]

    reply: str
    delivered: bool
    practice_result: PracticeResult | None
