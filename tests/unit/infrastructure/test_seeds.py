# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the default prompt seeds."""

from pathlib import Path

import pytest

from src.core.agents.catalog import AgentCatalog
from src.core.prompts.registry import PromptRegistry, ResolvedPrompt
from src.infrastructure.database.models import PromptTemplate
from src.infrastructure.database.seeds import DEFAULT_PROMPTS, seed_prompts

MANIFEST = Path(__file__).parents[3] / "config" / "agents" / "manifest.yaml"


class TestSeedPrompts:
    """Tests for seed_prompts."""

    @pytest.mark.asyncio
    async def test_inserts_all_defaults(self, session_factory) -> None:
        session = session_factory.session

        created = await seed_prompts(session)

        assert len(created) == len(DEFAULT_PROMPTS)
        ids = {prompt.id for prompt in session.added_of(PromptTemplate)}
        assert "all-orchestrator-router" in ids
        assert "all-speech_evaluation-evaluator" in ids

    @pytest.mark.asyncio
    async def test_existing_templates_are_kept(self, session_factory) -> None:
        session = session_factory.session
        custom = PromptTemplate(
            id="all-meta_query-assistant",
            level="all",
            type="meta_query",
            persona="assistant",
            template="Custom",
            variables=[],
            is_active=False,
        )
        session.put(custom)

        created = await seed_prompts(session)

        assert len(created) == len(DEFAULT_PROMPTS) - 1
        assert custom.template == "Custom"

    @pytest.mark.asyncio
    async def test_overwrite(self, session_factory) -> None:
        session = session_factory.session
        custom = PromptTemplate(
            id="all-meta_query-assistant",
            level="all",
            type="meta_query",
            persona="assistant",
            template="Custom",
            variables=[],
            is_active=False,
        )
        session.put(custom)

        await seed_prompts(session, overwrite=True)

        assert custom.template != "Custom"
        assert custom.is_active is True
        assert "chat_history" in custom.variables

    @pytest.mark.asyncio
    async def test_seeds_cover_the_manifest(self, session_factory) -> None:
        session = session_factory.session
        await seed_prompts(session)
        registry = PromptRegistry(
            ResolvedPrompt.from_model(row) for row in session.added_of(PromptTemplate)
        )

        catalog = AgentCatalog.build(MANIFEST, registry)

        assert set(catalog.names) == {
            "practice_session",
            "meta_query",
            "customer_service",
            "onboarding",
            "short_response",
            "text_summary",
            "teacher_feedback",
        }
