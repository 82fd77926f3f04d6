# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice session and level test models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, new_uuid
from src.utils.datetime import utc_now


class PracticeSession(Base):
    """One evaluated practice utterance.

    The five score columns are written together from a single evaluation
    object, never piecemeal.
    """

    __tablename__ = "practice_sessions"
    __table_args__ = (Index("ix_practice_sessions_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    session_type: Mapped[str] = mapped_column(String(30), default="daily_practice", nullable=False)

    input_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcription: Mapped[str] = mapped_column(Text, nullable=False)

    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    pronunciation_score: Mapped[int] = mapped_column(Integer, nullable=False)
    fluency_score: Mapped[int] = mapped_column(Integer, nullable=False)
    grammar_score: Mapped[int] = mapped_column(Integer, nullable=False)
    vocabulary_score: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    xp_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    feedback_audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    feedback_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    word_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    @property
    def scores(self) -> dict[str, int]:
        """Score columns keyed by skill name."""
        return {
            "overall": self.overall_score,
            "pronunciation": self.pronunciation_score,
            "fluency": self.fluency_score,
            "grammar": self.grammar_score,
            "vocabulary": self.vocabulary_score,
        }


class LevelTest(Base):
    """Result of a placement test taken during onboarding."""

    __tablename__ = "level_tests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    test_type: Mapped[str] = mapped_column(String(20), default="initial", nullable=False)
    result_level: Mapped[str] = mapped_column(String(2), nullable=False)
    questions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    responses: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
