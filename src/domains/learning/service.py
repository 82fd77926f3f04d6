# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning service: progress analytics and level-up eligibility.

Example:
    >>> service = LearningService(get_session)
    >>> assessment = await service.check_level_up_eligibility(user_id)
    >>> if assessment.eligible:
    ...     print(f"Ready for {assessment.next_level}")
"""

import logging
from datetime import timedelta

from sqlalchemy import select

from src.domains.learning.analytics import (
    LevelUpAssessment,
    ProgressSummary,
    assess_level_up,
    summarize_progress,
)
from src.domains.user.service import UserNotFoundError
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import PracticeSession, User
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

LEVEL_UP_WINDOW_DAYS = 30
LEVEL_UP_MAX_SESSIONS = 15


class LearningService:
    """Read-side service over practice sessions.

    Attributes:
        _session_factory: Callable returning a transactional session.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def check_level_up_eligibility(self, user_id: str) -> LevelUpAssessment:
        """Check whether a user qualifies for a level-up test.

        Looks at up to 15 daily-practice sessions from the last 30 days.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        since = utc_now() - timedelta(days=LEVEL_UP_WINDOW_DAYS)
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)

            result = await session.execute(
                select(PracticeSession)
                .where(
                    PracticeSession.user_id == user_id,
                    PracticeSession.session_type == "daily_practice",
                    PracticeSession.created_at >= since,
                )
                .order_by(PracticeSession.created_at.desc())
                .limit(LEVEL_UP_MAX_SESSIONS)
            )
            recent = list(result.scalars().all())
            level = user.level

        assessment = assess_level_up(level, recent)
        logger.info(
            "Level-up check: user=%s, level=%s, eligible=%s, reason=%s",
            user_id,
            level,
            assessment.eligible,
            assessment.reason,
        )
        return assessment

    async def get_progress(self, user_id: str, days: int = 30) -> ProgressSummary:
        """Summarize a user's practice over the last `days` days."""
        since = utc_now() - timedelta(days=days)
        async with self._session_factory() as session:
            result = await session.execute(
                select(PracticeSession)
                .where(
                    PracticeSession.user_id == user_id,
                    PracticeSession.created_at >= since,
                )
                .order_by(PracticeSession.created_at.asc())
            )
            sessions = list(result.scalars().all())

        return summarize_progress(sessions)
