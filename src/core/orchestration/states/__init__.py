# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow state definitions.

TypedDict-based states for LangGraph workflows.

States:
    ConversationState: State for one routed conversation turn
"""

from src.core.orchestration.states.conversation import ConversationState

__all__ = [
    "ConversationState",
]
