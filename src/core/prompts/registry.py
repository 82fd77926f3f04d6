# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Prompt registry for system-prompt templates.

Templates are keyed by (level, type, persona). Resolution tries the
exact CEFR level first and then the wildcard level "all". A missing
template is a configuration error; callers that can live without a
specialist prompt use resolve_or_fallback with an inline template.

Templates use {{name}} placeholders:
- provided values are substituted,
- declared but missing variables render as an empty string,
- unknown placeholders are left untouched.

Example:
    >>> registry = await PromptRegistry.load(get_session)
    >>> prompt = registry.render("B1", "speech_evaluation", "evaluator",
    ...                          {"transcription": text, "cefr_level": "B1"})
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sqlalchemy import select

from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import WILDCARD_LEVEL, PromptTemplate

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

TemplateKey = tuple[str, str, str]


class PromptNotFoundError(Exception):
    """Raised when no active template matches (level, type, persona).

    Attributes:
        level: Requested CEFR level.
        prompt_type: Requested prompt type.
        persona: Requested persona.
    """

    def __init__(self, level: str, prompt_type: str, persona: str) -> None:
        self.level = level
        self.prompt_type = prompt_type
        self.persona = persona
        self.message = (
            f"No active prompt template for level={level}, "
            f"type={prompt_type}, persona={persona}"
        )
        super().__init__(self.message)


def render_template(
    template: str,
    values: Mapping[str, Any],
    declared: Iterable[str] = (),
) -> str:
    """Substitute {{name}} placeholders in a template body.

    Args:
        template: Template text.
        values: Values to substitute. None renders as an empty string.
        declared: Variable names the template declares.

    Returns:
        Rendered text.
    """
    declared_names = set(declared)

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in values:
            value = values[name]
            return "" if value is None else str(value)
        if name in declared_names:
            return ""
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


@dataclass(frozen=True)
class ResolvedPrompt:
    """An immutable, resolved prompt template."""

    id: str
    level: str
    prompt_type: str
    persona: str
    template: str
    variables: tuple[str, ...] = field(default_factory=tuple)
    priority: int = 0

    @property
    def key(self) -> TemplateKey:
        return (self.level, self.prompt_type, self.persona)

    def render(self, values: Mapping[str, Any] | None = None) -> str:
        """Render this template with the given values."""
        return render_template(self.template, values or {}, self.variables)

    @classmethod
    def from_model(cls, row: PromptTemplate) -> "ResolvedPrompt":
        return cls(
            id=row.id,
            level=row.level,
            prompt_type=row.type,
            persona=row.persona,
            template=row.template,
            variables=tuple(row.variables or ()),
            priority=row.priority or 0,
        )


class PromptRegistry:
    """Read-only lookup of active prompt templates.

    The registry is built once and never mutated. Resolving the same key
    twice returns the same object.

    Attributes:
        keys: All loaded (level, type, persona) keys.
    """

    def __init__(self, prompts: Iterable[ResolvedPrompt]) -> None:
        """Index prompts by key, keeping the highest priority per key.

        Args:
            prompts: Active prompt templates.
        """
        index: dict[TemplateKey, ResolvedPrompt] = {}
        for prompt in prompts:
            current = index.get(prompt.key)
            if current is None or prompt.priority > current.priority:
                index[prompt.key] = prompt
        self._index: Mapping[TemplateKey, ResolvedPrompt] = MappingProxyType(index)

    @classmethod
    async def load(cls, session_factory: SessionFactory) -> "PromptRegistry":
        """Load all active templates from the database.

        Args:
            session_factory: Callable returning a session context manager.

        Returns:
            A populated PromptRegistry.

        Raises:
            DatabaseError: If the templates cannot be read.
        """
        async with session_factory() as session:
            result = await session.execute(
                select(PromptTemplate).where(PromptTemplate.is_active.is_(True))
            )
            rows = result.scalars().all()

        registry = cls(ResolvedPrompt.from_model(row) for row in rows)
        logger.info("Prompt registry loaded: templates=%d", len(registry))
        return registry

    def __len__(self) -> int:
        return len(self._index)

    @property
    def keys(self) -> list[TemplateKey]:
        return list(self._index)

    def has_default(self, prompt_type: str, persona: str) -> bool:
        """Check if (type, persona) resolves for every level via the wildcard."""
        return (WILDCARD_LEVEL, prompt_type, persona) in self._index

    def resolve(self, level: str, prompt_type: str, persona: str) -> ResolvedPrompt:
        """Resolve a template by exact level, then by the wildcard level.

        Args:
            level: CEFR level code.
            prompt_type: Prompt type, e.g. "speech_evaluation".
            persona: Persona name, e.g. "evaluator".

        Returns:
            The resolved prompt.

        Raises:
            PromptNotFoundError: If neither match exists.
        """
        prompt = self._index.get((level, prompt_type, persona))
        if prompt is None:
            prompt = self._index.get((WILDCARD_LEVEL, prompt_type, persona))
        if prompt is None:
            raise PromptNotFoundError(level, prompt_type, persona)
        return prompt

    def resolve_or_fallback(
        self,
        level: str,
        prompt_type: str,
        persona: str,
        fallback: str,
    ) -> ResolvedPrompt:
        """Resolve a template, or wrap an inline fallback if it is missing.

        Args:
            level: CEFR level code.
            prompt_type: Prompt type.
            persona: Persona name.
            fallback: Inline template body used when nothing is registered.

        Returns:
            The registered prompt or an unregistered inline one.
        """
        try:
            return self.resolve(level, prompt_type, persona)
        except PromptNotFoundError:
            logger.warning(
                "Prompt missing, using inline fallback: type=%s, persona=%s, level=%s",
                prompt_type,
                persona,
                level,
            )
            return ResolvedPrompt(
                id=f"inline-{prompt_type}-{persona}",
                level=WILDCARD_LEVEL,
                prompt_type=prompt_type,
                persona=persona,
                template=fallback,
            )

    def render(
        self,
        level: str,
        prompt_type: str,
        persona: str,
        values: Mapping[str, Any] | None = None,
    ) -> str:
        """Resolve and render a template in one step.

        Raises:
            PromptNotFoundError: If the template cannot be resolved.
        """
        return self.resolve(level, prompt_type, persona).render(values)
