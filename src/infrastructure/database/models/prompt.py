# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Prompt template model."""

from sqlalchemy import JSON, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin

WILDCARD_LEVEL = "all"


class PromptTemplate(TimestampMixin, Base):
    """A system prompt keyed by (level, type, persona).

    The level is a CEFR code or the wildcard "all". Ids follow
    "{level}-{type}-{persona}".
    """

    __tablename__ = "prompt_templates"
    __table_args__ = (Index("ix_prompt_templates_lookup", "type", "persona", "level"),)

    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    level: Mapped[str] = mapped_column(String(5), default=WILDCARD_LEVEL, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    persona: Mapped[str] = mapped_column(String(50), nullable=False)
    template: Mapped[str] = mapped_column(Text, nullable=False)
    variables: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @staticmethod
    def make_id(level: str, type_: str, persona: str) -> str:
        """Build the canonical template id."""
        return f"{level}-{type_}-{persona}"
