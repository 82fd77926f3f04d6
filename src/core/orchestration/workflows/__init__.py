# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LangGraph workflow implementations.

ConversationWorkflow:
    Route message → practice session pipeline or catalog agent → end
"""

from src.core.orchestration.workflows.conversation import ConversationWorkflow

__all__ = [
    "ConversationWorkflow",
]
