# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models."""

from src.infrastructure.database.models.base import Base, TimestampMixin, new_uuid
from src.infrastructure.database.models.conversation import ConversationTurn
from src.infrastructure.database.models.learning import LevelTest, PracticeSession
from src.infrastructure.database.models.prompt import WILDCARD_LEVEL, PromptTemplate
from src.infrastructure.database.models.user import SUPPORTED_PLATFORMS, User

__all__ = [
    "Base",
    "TimestampMixin",
    "new_uuid",
    "User",
    "SUPPORTED_PLATFORMS",
    "ConversationTurn",
    "PracticeSession",
    "LevelTest",
    "PromptTemplate",
    "WILDCARD_LEVEL",
]
