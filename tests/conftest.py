# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Persistence is exercised through FakeSessionFactory, an in-memory
stand-in for the transactional get_session() factory. It keeps rows by
(model, id), records what was added and counts commits and rollbacks.
Query results for session.execute() are queued per test.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.intelligence.llm.client import LLMResponse
from src.core.prompts.registry import PromptRegistry, ResolvedPrompt
from src.infrastructure.database.models import User


# =============================================================================
# Fake persistence
# =============================================================================


class FakeResult:
    """Mimics the parts of a SQLAlchemy Result the code uses."""

    def __init__(self, rows: Iterable[Any]) -> None:
        self._rows = list(rows)

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> list[Any]:
        return list(self._rows)

    def scalar_one_or_none(self) -> Any:
        return self._rows[0] if self._rows else None


class FakeSession:
    """In-memory session shared by every block of one factory."""

    def __init__(self) -> None:
        self.rows: dict[tuple[type, Any], Any] = {}
        self.added: list[Any] = []
        self.results: list[Any] = []
        self.statements: list[Any] = []
        self.locked: list[tuple[type, Any]] = []
        self.fail_on_get: Optional[Exception] = None
        self.fail_on_flush: Optional[Exception] = None

    def put(self, obj: Any) -> Any:
        self.rows[(type(obj), obj.id)] = obj
        return obj

    async def get(self, model: type, ident: Any, with_for_update: bool = False) -> Any:
        if self.fail_on_get is not None:
            raise self.fail_on_get
        if with_for_update:
            self.locked.append((model, ident))
        return self.rows.get((model, ident))

    def add(self, obj: Any) -> None:
        self.added.append(obj)
        if getattr(obj, "id", None) is not None:
            self.put(obj)

    async def flush(self) -> None:
        error, self.fail_on_flush = self.fail_on_flush, None
        if error is not None:
            raise error

    async def execute(self, statement: Any) -> FakeResult:
        self.statements.append(statement)
        if not self.results:
            return FakeResult([])
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return FakeResult(result)

    def added_of(self, model: type) -> list[Any]:
        return [obj for obj in self.added if isinstance(obj, model)]


class FakeSessionFactory:
    """Callable returning a transactional context, like get_session."""

    def __init__(self, session: Optional[FakeSession] = None) -> None:
        self.session = session or FakeSession()
        self.commits = 0
        self.rollbacks = 0
        self.error: Optional[Exception] = None

    def __call__(self) -> Any:
        return self._context()

    @asynccontextmanager
    async def _context(self) -> AsyncIterator[FakeSession]:
        if self.error is not None:
            raise self.error
        try:
            yield self.session
        except Exception:
            self.rollbacks += 1
            raise
        self.commits += 1


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    """Provide an in-memory session factory."""
    return FakeSessionFactory()


class FakeCache:
    """Dict-backed key-value cache with a switchable failure."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.expirations: dict[str, Optional[int]] = {}
        self.error: Optional[Exception] = None

    async def get(self, key: str) -> Any:
        if self.error:
            raise self.error
        return self.data.get(key)

    async def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None:
        if self.error:
            raise self.error
        self.data[key] = value
        self.expirations[key] = expire_seconds

    async def delete(self, key: str) -> bool:
        if self.error:
            raise self.error
        return self.data.pop(key, None) is not None


@pytest.fixture
def cache() -> FakeCache:
    """Provide an in-memory cache."""
    return FakeCache()


# =============================================================================
# Domain fixtures
# =============================================================================


def make_user(**overrides: Any) -> User:
    """Build a fully populated User without touching a database."""
    values: dict[str, Any] = {
        "id": "user-1",
        "telegram_id": "111",
        "whatsapp_id": None,
        "first_name": "María",
        "level": "B1",
        "xp": 100,
        "streak": 2,
        "interests": ["travel"],
        "learning_goal": "travel",
        "is_onboarding": False,
        "onboarding_step": "complete",
        "onboarding_updated_at": None,
        "last_active_at": None,
    }
    values.update(overrides)
    return User(**values)


@pytest.fixture
def user_factory() -> Any:
    """Provide the User builder."""
    return make_user


@pytest.fixture
def user() -> User:
    """Provide a user who finished onboarding."""
    return make_user()


@pytest.fixture
def onboarding_user(session_factory: FakeSessionFactory) -> User:
    """Provide a stored new user at the welcome step."""
    return session_factory.session.put(
        make_user(
            level="A0",
            xp=0,
            streak=0,
            is_onboarding=True,
            onboarding_step="welcome",
            interests=[],
            learning_goal=None,
        )
    )


def make_prompt(
    prompt_type: str,
    persona: str,
    template: str,
    level: str = "all",
    variables: tuple[str, ...] = (),
    priority: int = 0,
) -> ResolvedPrompt:
    return ResolvedPrompt(
        id=f"{level}-{prompt_type}-{persona}",
        level=level,
        prompt_type=prompt_type,
        persona=persona,
        template=template,
        variables=variables,
        priority=priority,
    )


@pytest.fixture
def registry() -> PromptRegistry:
    """Provide a registry with a prompt for every manifest agent."""
    return PromptRegistry(
        [
            make_prompt(
                "orchestrator",
                "router",
                "Agents:\n{{agent_manifest}}\nHistory:\n{{chat_history}}\n"
                "Message: {{user_message}}",
            ),
            make_prompt(
                "speech_evaluation",
                "evaluator",
                "Evaluate {{transcription}} for a {{cefr_level}} learner.",
            ),
            make_prompt("meta_query", "assistant", "Profile: {{user_profile}}"),
            make_prompt("customer_service", "support", "Support agent."),
            make_prompt("onboarding", "lingo", "Onboarding guide."),
            make_prompt("short_response", "coach", "Short replies for {{first_name}}."),
            make_prompt("text_summary", "reporter", "Resumen: {{evaluation}}"),
            make_prompt("teacher_feedback", "alex", "Feedback for {{first_name}}."),
        ]
    )


def llm_response(content: str, provider: str = "openai") -> LLMResponse:
    """Build an LLMResponse with the given content."""
    return LLMResponse(content=content, model="test-model", provider=provider)


@pytest.fixture
def chat() -> MagicMock:
    """Provide a chat/transcription/speech service mock."""
    service = MagicMock()
    service.complete = AsyncMock(return_value=llm_response("Hello!"))
    service.transcribe = AsyncMock(return_value="I went to the beach yesterday")
    service.synthesize = AsyncMock(return_value=b"mp3-bytes")
    return service


@pytest.fixture
def gateway() -> MagicMock:
    """Provide a messaging gateway mock."""
    mock = MagicMock()
    mock.send_message = AsyncMock()
    return mock


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")
