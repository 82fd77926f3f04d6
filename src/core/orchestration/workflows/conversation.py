# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversation turn workflow using LangGraph.

Workflow Structure:
    route (AgentRouter.decide)
        ↓
    [conditional: practice agent → practice_session, otherwise → respond]
        ↓
    practice_session (SessionPipeline.run, delivers its own feedback)
    respond (CatalogAgent.invoke, reply sent by the dispatcher)
        ↓
    END

There is exactly one router hop and one worker hop per turn, and no
checkpointing: the conversation log lives in the ConversationStore.
"""

import logging
from typing import Any, Literal

from langgraph.graph import END, StateGraph

from src.core.agents.catalog import AgentCatalog
from src.core.intelligence.llm.interfaces import ChatCompletionService
from src.core.orchestration.router import AgentRouter, profile_variables
from src.core.orchestration.states.conversation import ConversationState
from src.domains.conversation.store import Turn, format_history
from src.domains.learning.session_pipeline import (
    PRACTICE_AGENT,
    PracticeInput,
    SessionPipeline,
)
from src.infrastructure.database.models import User

logger = logging.getLogger(__name__)


class ConversationWorkflow:
    """Routes one message and runs the selected agent.

    Attributes:
        router: Agent router for the route node.
        catalog: Agent catalog for the respond node.
        pipeline: Session pipeline for the practice node.

    Example:
        >>> workflow = ConversationWorkflow(router, catalog, pipeline, chain)
        >>> state = await workflow.run(user, "telegram", "I visited my aunt last weekend", history)
        >>> state["agent"], state["reply"]
    """

    def __init__(
        self,
        router: AgentRouter,
        catalog: AgentCatalog,
        pipeline: SessionPipeline,
        chat: ChatCompletionService,
        practice_agent: str = PRACTICE_AGENT,
    ) -> None:
        self._router = router
        self._catalog = catalog
        self._pipeline = pipeline
        self._chat = chat
        self._practice_agent = practice_agent

        self._graph = self._build_graph()
        self._compiled = self._graph.compile()

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph state graph.

        Returns:
            StateGraph configured for one routed turn.
        """
        graph = StateGraph(ConversationState)

        graph.add_node("route", self._route)
        graph.add_node("practice_session", self._practice_session)
        graph.add_node("respond", self._respond)

        graph.set_entry_point("route")

        graph.add_conditional_edges(
            "route",
            self._select_path,
            {
                "practice": "practice_session",
                "respond": "respond",
            },
        )

        graph.add_edge("practice_session", END)
        graph.add_edge("respond", END)

        return graph

    async def run(
        self,
        user: User,
        platform: str,
        message: str,
        history: list[Turn],
        input_reference: str | None = None,
        duration_seconds: float | None = None,
    ) -> ConversationState:
        """Run the workflow for one message.

        Returns:
            Final state with agent, reply and delivered populated.
        """
        initial_state: ConversationState = {
            "user": user,
            "platform": platform,
            "message": message,
            "history": history,
            "input_reference": input_reference,
            "duration_seconds": duration_seconds,
            "delivered": False,
        }
        return await self._compiled.ainvoke(initial_state)

    # =========================================================================
    # Nodes
    # =========================================================================

    async def _route(self, state: ConversationState) -> dict[str, Any]:
        decision = await self._router.decide(
            state["user"], state.get("history", []), state["message"]
        )
        return {
            "agent": decision.agent,
            "reasoning": decision.reasoning,
            "decision_source": decision.source,
        }

    async def _practice_session(self, state: ConversationState) -> dict[str, Any]:
        user = state["user"]
        result = await self._pipeline.run(
            user,
            PracticeInput(
                user_id=user.id,
                platform=state["platform"],
                text=state["message"],
                input_reference=state.get("input_reference"),
                duration_seconds=state.get("duration_seconds"),
            ),
        )
        return {
            "reply": result.reply_text,
            "delivered": result.delivered,
            "practice_result": result,
        }

    async def _respond(self, state: ConversationState) -> dict[str, Any]:
        user = state["user"]
        agent = self._catalog.get(state["agent"])
        variables = {
            **profile_variables(user),
            "chat_history": format_history(state.get("history", [])),
            "user_message": state["message"],
        }
        reply = await agent.invoke(
            self._chat,
            level=user.level,
            user_message=state["message"],
            variables=variables,
        )

        text = reply.text
        if reply.data is not None:
            text = str(reply.data.get("message") or reply.data.get("response") or "")

        logger.debug("Agent %s replied: chars=%d", agent.name, len(text))
        return {"reply": text, "delivered": False}

    # =========================================================================
    # Routing Functions
    # =========================================================================

    def _select_path(self, state: ConversationState) -> Literal["practice", "respond"]:
        """Send the practice agent to the session pipeline."""
        if state.get("agent") == self._practice_agent:
            return "practice"
        return "respond"
