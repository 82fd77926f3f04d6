# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the LingoCoach API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.dependencies import build_services
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.agents.catalog import AgentCatalog
from src.core.config import get_settings
from src.core.intelligence.llm.fallback import build_provider_chain
from src.core.prompts.registry import PromptRegistry
from src.domains.learning.session_pipeline import PRACTICE_AGENT
from src.infrastructure.cache import close_redis, get_redis, init_redis
from src.infrastructure.database.connection import (
    close_database,
    create_all_tables,
    get_session,
    init_database,
)
from src.infrastructure.database.seeds import seed_prompts
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup initializes, in order:
    - Logging
    - Database connection (tables created in development)
    - Default prompt templates
    - Redis cache
    - Prompt registry and agent catalog
    - Provider chain and the dispatcher wiring

    A missing prompt for the router or a required agent fails startup.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting LingoCoach API: environment=%s, debug=%s",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    await init_database(settings)
    logger.info("Database connection initialized")

    if settings.is_development:
        try:
            await create_all_tables()
        except Exception as e:
            logger.warning("Failed to create tables: %s", str(e))

    try:
        async with get_session() as session:
            await seed_prompts(session)
    except Exception as e:
        logger.warning("Failed to seed prompt templates: %s", str(e))

    await init_redis(settings)
    logger.info("Redis connection initialized")

    registry = await PromptRegistry.load(get_session)
    catalog = AgentCatalog.build(
        settings.conversation.agents_config,
        registry,
        required=(
            PRACTICE_AGENT,
            settings.conversation.default_agent,
            settings.conversation.short_response_agent,
        ),
    )
    chain = build_provider_chain(settings)

    services = build_services(settings, get_session, get_redis(), registry, catalog, chain)
    app.state.services = services
    logger.info("LingoCoach API ready: prompts=%d, agents=%s", len(registry), catalog.names)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    try:
        await services.close()
    except Exception as e:
        logger.warning("Error closing services: %s", str(e))
    app.state.services = None

    try:
        await close_redis()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning("Error closing Redis: %s", str(e))

    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down LingoCoach API")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Wire infrastructure on startup. Tests disable it and
            override the dependencies instead.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="LingoCoach API",
        description="Conversational English-learning backend",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan if use_lifespan else None,
    )
    app.state.services = None

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
