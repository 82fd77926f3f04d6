# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversation domain: the per-user turn log, history formatting and
inbound content transcription."""

from src.domains.conversation.inputs import INPUT_TYPES, InputTranscriber, InputType
from src.domains.conversation.store import ConversationStore, Turn, format_history

__all__ = [
    "ConversationStore",
    "INPUT_TYPES",
    "InputTranscriber",
    "InputType",
    "Turn",
    "format_history",
]
