# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dynamic agent router.

Chooses the one catalog agent that handles a user turn:

1. Messages shorter than the word threshold go straight to the
   short-response agent. The LLM is not called.
2. Otherwise the router agent gets the agent manifest, the formatted
   history window and the message, and answers with
   {"agent_to_invoke": ..., "reasoning": ...}.
3. Unparseable replies, unknown agent names and provider failures fall
   back to the default agent.

The reasoning is logged and never shown to the user. A missing router
prompt is not recoverable and propagates.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from src.core.agents.catalog import AgentCatalog, AgentNotFoundError
from src.core.agents.output import AgentOutputError
from src.core.intelligence.llm.client import LLMError
from src.core.intelligence.llm.interfaces import ChatCompletionService
from src.domains.conversation.store import Turn, format_history
from src.infrastructure.database.models import User
from src.utils.text import count_words

logger = logging.getLogger(__name__)

DecisionSource = Literal["short_circuit", "router", "fallback"]


def profile_variables(user: User) -> dict[str, Any]:
    """Prompt variables describing the user, shared by router and agents."""
    return {
        "first_name": user.first_name or "",
        "level": user.level,
        "cefr_level": user.level,
        "xp": user.xp,
        "streak": user.streak,
        "interests": ", ".join(user.interests or []),
        "learning_goal": user.learning_goal or "",
        "onboarding_step": user.onboarding_step,
        "user_profile": json.dumps(user.to_profile(), ensure_ascii=False),
    }


@dataclass(frozen=True)
class RoutingDecision:
    """The agent chosen for a turn.

    Attributes:
        agent: Catalog agent name.
        reasoning: Router's reasoning, for logs only.
        source: How the decision was made.
    """

    agent: str
    reasoning: str = ""
    source: DecisionSource = "router"


class AgentRouter:
    """Selects a catalog agent for each user message.

    Example:
        >>> router = AgentRouter(catalog, chain, default_agent="practice_session",
        ...                      short_response_agent="short_response")
        >>> decision = await router.decide(user, history, "How many XP do I have now?")
        >>> decision.agent
        'meta_query'
    """

    def __init__(
        self,
        catalog: AgentCatalog,
        chat: ChatCompletionService,
        default_agent: str,
        short_response_agent: str,
        min_word_threshold: int = 3,
    ) -> None:
        """Initialize the router.

        Raises:
            AgentNotFoundError: If a configured agent is not in the catalog.
        """
        for name in (default_agent, short_response_agent):
            if name not in catalog:
                raise AgentNotFoundError(name, catalog.names)

        self._catalog = catalog
        self._chat = chat
        self._default_agent = default_agent
        self._short_response_agent = short_response_agent
        self._min_words = min_word_threshold

    @property
    def default_agent(self) -> str:
        return self._default_agent

    async def decide(
        self,
        user: User,
        history: Sequence[Turn],
        message: str,
    ) -> RoutingDecision:
        """Pick the agent for one message.

        Args:
            user: The user sending the message.
            history: Previous turns, oldest first, excluding this message.
            message: The user's message text.

        Returns:
            RoutingDecision naming a catalog agent.

        Raises:
            PromptNotFoundError: If the router prompt cannot be resolved.
        """
        if count_words(message) < self._min_words:
            logger.debug("Short message routed to %s", self._short_response_agent)
            return RoutingDecision(self._short_response_agent, source="short_circuit")

        variables = {
            **profile_variables(user),
            "agent_manifest": self._catalog.manifest(),
            "chat_history": format_history(history),
            "user_message": message,
        }

        try:
            reply = await self._catalog.router.invoke(
                self._chat,
                level=user.level,
                user_message=message,
                variables=variables,
                temperature=0.0,
            )
        except (LLMError, AgentOutputError) as e:
            logger.warning("Router call failed, using default agent: %s", e)
            return self._fallback("router call failed")

        data = reply.data or {}
        agent = data.get("agent_to_invoke")
        reasoning = str(data.get("reasoning") or "")

        if not isinstance(agent, str) or agent not in self._catalog.routable_names():
            logger.warning("Router picked unknown agent %r, using default", agent)
            return self._fallback(reasoning)

        logger.info("Router selected %s: %s", agent, reasoning)
        return RoutingDecision(agent, reasoning, source="router")

    def _fallback(self, reasoning: str) -> RoutingDecision:
        return RoutingDecision(self._default_agent, reasoning, source="fallback")
