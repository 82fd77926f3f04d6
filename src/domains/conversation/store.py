# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversation state store.

An append-only per-user log of turns. Only the most recent `window`
turns are ever read back as context; older turns stay for audit.

Both operations degrade instead of failing the turn: a lost append is
logged and reported as False, an unreadable history is an empty window.

Example:
    >>> store = ConversationStore(get_session, window=10)
    >>> await store.append(user.id, "user", "I went to the beach yesterday")
    >>> history = await store.window(user.id, exclude_latest=True)
    >>> print(format_history(history))
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select

from src.infrastructure.database.connection import DatabaseError, SessionFactory
from src.infrastructure.database.models import ConversationTurn
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


@dataclass(frozen=True)
class Turn:
    """A detached, read-only conversation turn."""

    role: str
    content: str
    agent_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, row: ConversationTurn) -> "Turn":
        return cls(
            role=row.role,
            content=row.content,
            agent_name=row.agent_name,
            created_at=row.created_at,
        )


def format_history(turns: Sequence[Turn]) -> str:
    """Format turns as role-tagged lines, oldest first.

    Example:
        user: Hi!
        assistant: Hello, how are you?
    """
    return "\n".join(f"{turn.role}: {turn.content}" for turn in turns)


class ConversationStore:
    """Append and read back a bounded window of conversation turns.

    Attributes:
        window_size: Number of most recent turns returned by window().
    """

    def __init__(self, session_factory: SessionFactory, window: int = 10) -> None:
        self._session_factory = session_factory
        self._window = window

    @property
    def window_size(self) -> int:
        return self._window

    async def append(
        self,
        user_id: str,
        role: str,
        content: str,
        agent_name: Optional[str] = None,
    ) -> bool:
        """Append one turn.

        Args:
            user_id: Owning user id.
            role: "user" or "assistant".
            content: Message text.
            agent_name: Agent that produced an assistant turn.

        Returns:
            True if stored, False if the write failed.

        Raises:
            ValueError: If role is not "user" or "assistant".
        """
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role}")

        try:
            async with self._session_factory() as session:
                session.add(
                    ConversationTurn(
                        user_id=user_id,
                        role=role,
                        content=content,
                        agent_name=agent_name if role == "assistant" else None,
                        created_at=utc_now(),
                    )
                )
        except DatabaseError as e:
            logger.error("Failed to store %s turn for user %s: %s", role, user_id, e)
            return False
        return True

    async def window(self, user_id: str, exclude_latest: bool = False) -> list[Turn]:
        """Read the most recent turns, oldest first.

        Args:
            user_id: Owning user id.
            exclude_latest: Drop the newest turn, typically the message
                that is being answered right now.

        Returns:
            Up to window_size turns in chronological order.
        """
        limit = self._window + (1 if exclude_latest else 0)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ConversationTurn)
                    .where(ConversationTurn.user_id == user_id)
                    .order_by(ConversationTurn.created_at.desc(), ConversationTurn.id.desc())
                    .limit(limit)
                )
                rows = list(result.scalars().all())
        except DatabaseError as e:
            logger.warning("Failed to load history for user %s: %s", user_id, e)
            return []

        if exclude_latest and rows:
            rows = rows[1:]
        return [Turn.from_model(row) for row in reversed(rows[: self._window])]
