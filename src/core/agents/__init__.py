# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Agent layer: named specialists bound to prompts and output contracts.

Architecture:
    Dispatcher -> Router -> CatalogAgent -> LLM
                              |
                     PromptRegistry (level, type, persona)

Components:
    AgentCatalog: Immutable name -> agent mapping built at startup.
    CatalogAgent: One agent; invoke() renders its prompt and calls the LLM.
    OutputContract: Whether an agent replies in free text or JSON.
"""

from src.core.agents.catalog import (
    ROUTER_AGENT,
    AgentCatalog,
    AgentCatalogError,
    AgentNotFoundError,
    AgentReply,
    CatalogAgent,
)
from src.core.agents.output import AgentOutputError, OutputContract, parse_json_object

__all__ = [
    "ROUTER_AGENT",
    "AgentCatalog",
    "AgentCatalogError",
    "AgentNotFoundError",
    "AgentOutputError",
    "AgentReply",
    "CatalogAgent",
    "OutputContract",
    "parse_json_object",
]
