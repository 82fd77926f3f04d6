# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions and helper methods.
"""

from src.infrastructure.database.models import (
    SUPPORTED_PLATFORMS,
    Base,
    ConversationTurn,
    LevelTest,
    PracticeSession,
    PromptTemplate,
    TimestampMixin,
    User,
    new_uuid,
)


class TestBase:
    """Test base model functionality."""

    def test_base_has_metadata(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin(self):
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_new_uuid(self):
        assert len(new_uuid()) == 36
        assert new_uuid() != new_uuid()

    def test_tables(self):
        """Verify every model is registered."""
        assert set(Base.metadata.tables) == {
            "users",
            "conversation_turns",
            "practice_sessions",
            "level_tests",
            "prompt_templates",
        }


class TestUser:
    """Test the User model."""

    def test_platform_id(self, user_factory):
        user = user_factory(telegram_id="111", whatsapp_id="+34600000000")

        assert user.platform_id("telegram") == "111"
        assert user.platform_id("whatsapp") == "+34600000000"
        assert user.platform_id("signal") is None

    def test_supported_platforms(self):
        assert set(SUPPORTED_PLATFORMS) == {"telegram", "whatsapp"}

    def test_to_profile(self, user):
        profile = user.to_profile()

        assert profile == {
            "id": "user-1",
            "first_name": "María",
            "level": "B1",
            "xp": 100,
            "streak": 2,
            "interests": ["travel"],
            "learning_goal": "travel",
        }

    def test_repr(self, user):
        assert repr(user) == "<User(id=user-1, level=B1, onboarding=False)>"


class TestRecords:
    """Test session, turn and prompt models."""

    def test_practice_session_columns(self):
        columns = PracticeSession.__table__.columns
        for name in (
            "overall_score",
            "pronunciation_score",
            "fluency_score",
            "grammar_score",
            "vocabulary_score",
            "feedback",
            "xp_earned",
        ):
            assert name in columns

    def test_level_test_belongs_to_user(self):
        [foreign_key] = LevelTest.__table__.c.user_id.foreign_keys
        assert foreign_key.column.table.name == "users"

    def test_conversation_turn_belongs_to_user(self):
        [foreign_key] = ConversationTurn.__table__.c.user_id.foreign_keys
        assert foreign_key.column.table.name == "users"

    def test_prompt_template_id(self):
        assert PromptTemplate.make_id("B1", "meta_query", "assistant") == "B1-meta_query-assistant"
