# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Agent catalog built from the manifest and the prompt registry.

Each agent is a named specialist bound to one prompt (type, persona)
and an output contract. The catalog is built once at startup and is
immutable afterwards. Building fails when the router, a routable agent,
or a required agent has no prompt in the registry.

Usage:
    catalog = AgentCatalog.build(
        Path("config/agents/manifest.yaml"),
        registry,
        required=("practice_session", "short_response"),
    )
    reply = await catalog.get("meta_query").invoke(chat, level="B1",
                                                   user_message="What's my XP?")
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from src.core.agents.output import AgentOutputError, OutputContract, parse_json_object
from src.core.config.yaml_loader import YAMLLoadError, load_yaml
from src.core.intelligence.llm.client import Message
from src.core.intelligence.llm.interfaces import ChatCompletionService
from src.core.prompts.registry import PromptRegistry
from src.infrastructure.database.models import WILDCARD_LEVEL

logger = logging.getLogger(__name__)

ROUTER_AGENT = "router"


class AgentCatalogError(Exception):
    """Raised when the catalog cannot be built.

    Attributes:
        message: Error description.
        original_error: Underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class AgentNotFoundError(Exception):
    """Raised when a requested agent is not in the catalog.

    Attributes:
        name: The agent name that was not found.
        available: Names of available agents.
    """

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        message = (
            f"Agent '{name}' not found. "
            f"Available: {', '.join(available) if available else 'none'}"
        )
        super().__init__(message)


@dataclass(frozen=True)
class AgentReply:
    """Result of one agent invocation.

    Attributes:
        agent: Name of the agent that produced the reply.
        text: Raw reply text.
        data: Parsed JSON object for JSON agents, else None.
        provider: Provider code that served the call.
    """

    agent: str
    text: str
    data: Optional[dict[str, Any]] = None
    provider: str = ""


@dataclass(frozen=True)
class CatalogAgent:
    """A named agent bound to a prompt and an output contract."""

    name: str
    description: str
    prompt_type: str
    persona: str
    registry: PromptRegistry = field(repr=False, compare=False)
    output: OutputContract = OutputContract.TEXT
    routable: bool = True

    def system_prompt(self, level: str, variables: Mapping[str, Any] | None = None) -> str:
        """Render this agent's system prompt for a CEFR level.

        Raises:
            PromptNotFoundError: If the prompt disappeared for this level.
        """
        return self.registry.render(level, self.prompt_type, self.persona, variables)

    async def invoke(
        self,
        chat: ChatCompletionService,
        *,
        level: str,
        user_message: str,
        variables: Mapping[str, Any] | None = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> AgentReply:
        """Run the agent once.

        Args:
            chat: Chat completion service.
            level: User's CEFR level, used for prompt resolution.
            user_message: Content of the user turn sent to the model.
            variables: Values for the prompt placeholders.
            temperature: Optional sampling temperature override.
            timeout: Deadline of each provider attempt in seconds.

        Returns:
            AgentReply, with data populated for JSON agents.

        Raises:
            PromptNotFoundError: If the prompt cannot be resolved.
            LLMError: If the completion fails.
            AgentOutputError: If a JSON agent returns something unparseable.
        """
        system_prompt = self.system_prompt(level, variables)
        response = await chat.complete(
            system_prompt,
            [Message("user", user_message)],
            json_mode=self.output is OutputContract.JSON,
            temperature=temperature,
            timeout=timeout,
        )

        if self.output is OutputContract.JSON:
            data = parse_json_object(response.content)
            return AgentReply(self.name, response.content, data, response.provider)

        return AgentReply(self.name, response.content.strip(), None, response.provider)


class AgentCatalog:
    """Immutable mapping of agent name to CatalogAgent.

    Attributes:
        router: The routing agent.
        names: All agent names except the router.
    """

    def __init__(self, router: CatalogAgent, agents: Iterable[CatalogAgent]) -> None:
        self._router = router
        self._agents: Mapping[str, CatalogAgent] = MappingProxyType(
            {agent.name: agent for agent in agents}
        )

    @classmethod
    def build(
        cls,
        manifest_path: Path | str,
        registry: PromptRegistry,
        required: Iterable[str] = (),
    ) -> "AgentCatalog":
        """Build the catalog from a manifest file.

        The router and every kept agent need a wildcard-level template so
        they resolve for any CEFR level. Non-routable agents without one are
        skipped with a warning.

        Args:
            manifest_path: Path to the agent manifest YAML.
            registry: Loaded prompt registry.
            required: Agent names that must be present (default agents).

        Returns:
            The built catalog.

        Raises:
            AgentCatalogError: If the manifest is invalid or a referenced
                agent has no prompt.
        """
        try:
            manifest = load_yaml(Path(manifest_path), required_keys=("router", "agents"))
        except YAMLLoadError as e:
            raise AgentCatalogError("Cannot load agent manifest", e) from e

        router = cls._make_agent(ROUTER_AGENT, manifest["router"], registry, routable=False)
        if not registry.has_default(router.prompt_type, router.persona):
            raise AgentCatalogError(
                f"Router prompt missing for level '{WILDCARD_LEVEL}': "
                f"type={router.prompt_type}, persona={router.persona}"
            )

        required_names = set(required)
        agents: list[CatalogAgent] = []
        for name, entry in (manifest.get("agents") or {}).items():
            agent = cls._make_agent(name, entry, registry)
            if registry.has_default(agent.prompt_type, agent.persona):
                agents.append(agent)
                continue
            if agent.routable or name in required_names:
                raise AgentCatalogError(
                    f"Agent '{name}' has no '{WILDCARD_LEVEL}'-level prompt: "
                    f"type={agent.prompt_type}, persona={agent.persona}"
                )
            logger.warning("Skipping agent without prompt: %s", name)

        names = {agent.name for agent in agents}
        missing = sorted(required_names - names)
        if missing:
            raise AgentCatalogError(f"Required agents missing from manifest: {missing}")

        catalog = cls(router, agents)
        logger.info(
            "Agent catalog built: agents=%s, routable=%s",
            catalog.names,
            catalog.routable_names(),
        )
        return catalog

    @staticmethod
    def _make_agent(
        name: str,
        entry: Mapping[str, Any],
        registry: PromptRegistry,
        routable: Optional[bool] = None,
    ) -> CatalogAgent:
        try:
            return CatalogAgent(
                name=name,
                description=" ".join(str(entry.get("description", "")).split()),
                prompt_type=entry["prompt_type"],
                persona=entry["persona"],
                output=OutputContract(entry.get("output", "text")),
                routable=entry.get("routable", True) if routable is None else routable,
                registry=registry,
            )
        except (KeyError, ValueError, AttributeError) as e:
            raise AgentCatalogError(f"Invalid manifest entry for agent '{name}'", e) from e

    @property
    def router(self) -> CatalogAgent:
        return self._router

    @property
    def names(self) -> list[str]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def get(self, name: str) -> CatalogAgent:
        """Get an agent by name.

        Raises:
            AgentNotFoundError: If no such agent exists.
        """
        agent = self._agents.get(name)
        if agent is None:
            raise AgentNotFoundError(name, self.names)
        return agent

    def routable_names(self) -> list[str]:
        """Names of agents the router may select."""
        return [name for name, agent in self._agents.items() if agent.routable]

    def manifest(self) -> str:
        """One line per routable agent: "- name: description"."""
        return "\n".join(
            f"- {agent.name}: {agent.description}"
            for agent in self._agents.values()
            if agent.routable
        )


__all__ = [
    "AgentCatalog",
    "AgentCatalogError",
    "AgentNotFoundError",
    "AgentOutputError",
    "AgentReply",
    "CatalogAgent",
    "ROUTER_AGENT",
]
