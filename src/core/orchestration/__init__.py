# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversation orchestration.

Architecture:
    API -> Dispatcher -> (onboarding | ConversationWorkflow)
                                         |
                              route -> agent or practice pipeline

- router: picks one catalog agent per message
- workflows: LangGraph graph with one route hop and one worker hop
- dispatcher: the error boundary that always answers the user
"""

from src.core.orchestration.dispatcher import APOLOGY_MESSAGE, EMPTY_REPLY_MESSAGE, Dispatcher
from src.core.orchestration.router import AgentRouter, RoutingDecision, profile_variables
from src.core.orchestration.states import ConversationState
from src.core.orchestration.workflows import ConversationWorkflow

__all__ = [
    "APOLOGY_MESSAGE",
    "AgentRouter",
    "ConversationState",
    "ConversationWorkflow",
    "Dispatcher",
    "EMPTY_REPLY_MESSAGE",
    "RoutingDecision",
    "profile_variables",
]
