# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

The application services are wired once at startup by build_services()
and kept on app.state. Endpoints reach them through the dependency
functions below, which tests replace with app.dependency_overrides.

Example:
    @router.post("/messages")
    async def receive(
        dispatcher: Dispatcher = Depends(get_dispatcher),
        users: UserService = Depends(get_user_service),
    ):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

from src.core.agents.catalog import AgentCatalog
from src.core.config import Settings
from src.core.intelligence.llm.fallback import ProviderChain
from src.core.orchestration.dispatcher import Dispatcher
from src.core.orchestration.router import AgentRouter
from src.core.orchestration.workflows.conversation import ConversationWorkflow
from src.core.prompts.registry import PromptRegistry
from src.domains.conversation.inputs import InputTranscriber
from src.domains.conversation.store import ConversationStore
from src.domains.learning.hooks import AfterCommitHooks
from src.domains.learning.service import LearningService
from src.domains.learning.session_pipeline import SessionPipeline
from src.domains.onboarding.scoring import AnswerScorer
from src.domains.onboarding.service import OnboardingStateMachine
from src.domains.onboarding.state_store import KeyValueCache, OnboardingStateStore
from src.domains.user.service import UserService
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.messaging.gateway import PlatformMessagingGateway
from src.infrastructure.storage.blob import LocalBlobStorage

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Application services shared by every request."""

    users: UserService
    dispatcher: Dispatcher
    gateway: PlatformMessagingGateway
    storage: LocalBlobStorage
    hooks: AfterCommitHooks

    async def close(self) -> None:
        """Wait for pending after-commit work and release the HTTP client."""
        await self.hooks.drain()
        await self.gateway.close()


def build_services(
    settings: Settings,
    session_factory: SessionFactory,
    cache: KeyValueCache,
    registry: PromptRegistry,
    catalog: AgentCatalog,
    ai: ProviderChain,
) -> Services:
    """Wire the application services.

    Args:
        settings: Application settings.
        session_factory: Transactional session factory.
        cache: Key-value cache for onboarding state.
        registry: Loaded prompt registry.
        catalog: Built agent catalog.
        ai: Provider chain used for chat, transcription and speech.

    Returns:
        Services holding the dispatcher and its collaborators.
    """
    users = UserService(session_factory)
    gateway = PlatformMessagingGateway(settings.messaging, users)
    storage = LocalBlobStorage(settings.storage, timeout=settings.speech.timeout)
    hooks = AfterCommitHooks()

    transcriber = InputTranscriber(storage, ai)
    store = ConversationStore(session_factory, window=settings.conversation.history_window)
    learning = LearningService(session_factory)

    pipeline = SessionPipeline(
        catalog,
        registry,
        ai,
        storage,
        gateway,
        session_factory,
        learning,
        settings.llm,
        hooks=hooks,
    )
    router = AgentRouter(
        catalog,
        ai,
        default_agent=settings.conversation.default_agent,
        short_response_agent=settings.conversation.short_response_agent,
        min_word_threshold=settings.conversation.min_word_threshold,
    )
    workflow = ConversationWorkflow(router, catalog, pipeline, ai)

    onboarding = OnboardingStateMachine(
        OnboardingStateStore(
            cache,
            session_factory,
            ttl_seconds=settings.onboarding.cache_ttl_seconds,
            expiry_hours=settings.onboarding.state_expiry_hours,
        ),
        AnswerScorer(
            ai,
            grammar_timeout=settings.llm.grammar_timeout,
            grammar_attempts=settings.llm.grammar_max_retries,
            default_grammar_score=settings.onboarding.default_grammar_score,
            fallback_score=settings.onboarding.fallback_score,
        ),
        transcriber,
        gateway,
        session_factory,
    )

    dispatcher = Dispatcher(
        users,
        onboarding,
        transcriber,
        store,
        workflow,
        gateway,
        speech=ai,
        storage=storage,
        reply_with_audio=settings.speech.reply_with_audio,
    )
    return Services(users, dispatcher, gateway, storage, hooks)


def _services(request: Request) -> Services:
    services: Optional[Services] = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return services


def get_dispatcher(request: Request) -> Dispatcher:
    """Get the dispatcher."""
    return _services(request).dispatcher


def get_user_service(request: Request) -> UserService:
    """Get the user service."""
    return _services(request).users
