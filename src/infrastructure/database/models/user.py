# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model.

A user is bound to at most one external id per messaging platform. The
onboarding_step and onboarding_updated_at columns double as the durable
backup of the onboarding state.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, new_uuid

SUPPORTED_PLATFORMS = ("telegram", "whatsapp")


class User(TimestampMixin, Base):
    """A learner talking to the coach over one or more platforms."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    telegram_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    whatsapp_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    level: Mapped[str] = mapped_column(String(2), default="A0", nullable=False)
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    interests: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    learning_goal: Mapped[str | None] = mapped_column(String(50), nullable=True)

    is_onboarding: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    onboarding_step: Mapped[str] = mapped_column(String(20), default="welcome", nullable=False)
    onboarding_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    last_active_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def platform_id(self, platform: str) -> str | None:
        """Get the external id bound to a platform."""
        if platform == "telegram":
            return self.telegram_id
        if platform == "whatsapp":
            return self.whatsapp_id
        return None

    def to_profile(self) -> dict[str, Any]:
        """Summarize the learner profile for prompts and messages."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "level": self.level,
            "xp": self.xp,
            "streak": self.streak,
            "interests": list(self.interests or []),
            "learning_goal": self.learning_goal,
        }

    def __repr__(self) -> str:
        return f"<User(id={self.id}, level={self.level}, onboarding={self.is_onboarding})>"
