# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Onboarding state store with a Redis cache and a database backup.

Writes go to Redis first and always to the database backup as well; a
write only fails when both stores fail. Reads prefer Redis and otherwise
rebuild a minimal state from the backup, which holds just the step name
and when it was written. Rebuilt level-test states start over with a
fresh question list. States older than the expiry count as abandoned.

Example:
    >>> store = OnboardingStateStore(get_redis(), get_session)
    >>> await store.put(user.id, OnboardingState(step=OnboardingStep.GOAL))
    >>> state = await store.get(user.id)
"""

import logging
from datetime import timedelta
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.state import OnboardingState, OnboardingStep
from src.domains.user.service import UserNotFoundError
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import User
from src.utils.datetime import ensure_utc, is_older_than, utc_now

logger = logging.getLogger(__name__)

KEY_PREFIX = "onboarding"


class KeyValueCache(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> bool: ...


class OnboardingStateError(Exception):
    """Raised when the state cannot be written to either store.

    Attributes:
        message: Error description.
        errors: Per-store error descriptions.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        self.message = message
        self.errors = errors or []
        super().__init__(message)

    def __str__(self) -> str:
        if self.errors:
            return f"{self.message}: {', '.join(self.errors)}"
        return self.message


def state_key(user_id: str) -> str:
    return f"{KEY_PREFIX}:{user_id}"


class OnboardingStateStore:
    """Resilient get/put/delete for OnboardingState.

    Attributes:
        ttl_seconds: Redis TTL of a cached state.
        expiry: Age after which a state is abandoned.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        session_factory: SessionFactory,
        ttl_seconds: int = 3600,
        expiry_hours: int = 2,
    ) -> None:
        self._cache = cache
        self._session_factory = session_factory
        self.ttl_seconds = ttl_seconds
        self.expiry = timedelta(hours=expiry_hours)

    async def put(self, user_id: str, state: OnboardingState) -> None:
        """Save a state to both stores.

        Raises:
            OnboardingStateError: If both the cache and the backup fail.
        """
        errors: list[str] = []

        try:
            await self._cache.set(
                state_key(user_id),
                state.model_dump(mode="json"),
                expire_seconds=self.ttl_seconds,
            )
        except Exception as e:
            errors.append(f"cache: {e}")
            logger.warning("Failed to cache onboarding state for %s: %s", user_id, e)

        try:
            await self._write_backup(user_id, state.step.value)
        except Exception as e:
            errors.append(f"database: {e}")
            logger.error("Failed to back up onboarding state for %s: %s", user_id, e)

        if len(errors) == 2:
            raise OnboardingStateError("Failed to save onboarding state", errors)
        if errors:
            logger.warning("Partial onboarding state save for %s: %s", user_id, errors)

    async def get(self, user_id: str) -> Optional[OnboardingState]:
        """Load a state, rebuilding it from the backup if the cache lost it.

        Returns:
            The state, or None if neither store has a live one.
        """
        state = await self._read_cache(user_id)
        if state is not None:
            return state

        logger.info("Onboarding state not cached for %s, trying database backup", user_id)
        state = await self._read_backup(user_id)
        if state is None:
            return None

        try:
            await self.put(user_id, state)
        except OnboardingStateError as e:
            logger.warning("Could not re-save recovered onboarding state: %s", e)
        return state

    async def delete(self, user_id: str) -> None:
        """Remove the state from both stores. Failures are logged."""
        try:
            await self._cache.delete(state_key(user_id))
        except Exception as e:
            logger.error("Failed to clear cached onboarding state for %s: %s", user_id, e)

        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
                if user is not None:
                    user.onboarding_updated_at = None
        except Exception as e:
            logger.error("Failed to clear onboarding backup for %s: %s", user_id, e)

    async def _read_cache(self, user_id: str) -> Optional[OnboardingState]:
        try:
            raw = await self._cache.get(state_key(user_id))
        except Exception as e:
            logger.warning("Onboarding cache unavailable for %s: %s", user_id, e)
            return None

        if raw is None:
            return None

        try:
            state = OnboardingState.model_validate(raw)
        except ValidationError as e:
            logger.warning("Invalid cached onboarding state for %s: %s", user_id, e)
            return None

        if is_older_than(state.updated_at, self.expiry):
            logger.info("Cached onboarding state for %s expired", user_id)
            return None
        return state

    async def _read_backup(self, user_id: str) -> Optional[OnboardingState]:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
                if user is None:
                    return None
                step = user.onboarding_step
                updated_at = ensure_utc(user.onboarding_updated_at)
        except Exception as e:
            logger.error("Failed to read onboarding backup for %s: %s", user_id, e)
            return None

        if step == OnboardingStep.COMPLETE.value or updated_at is None:
            return None

        if is_older_than(updated_at, self.expiry):
            logger.info("Onboarding backup for %s too old, considering expired", user_id)
            return None

        try:
            onboarding_step = OnboardingStep(step)
        except ValueError:
            logger.warning("Unknown onboarding step in backup for %s: %s", user_id, step)
            return None

        return OnboardingState(
            step=onboarding_step,
            questions=(
                level_test_questions() if onboarding_step is OnboardingStep.LEVEL_TEST else []
            ),
            cursor=0,
            responses=[],
            started_at=updated_at,
            created_at=updated_at,
            updated_at=utc_now(),
        )

    async def _write_backup(self, user_id: str, step: str) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user.onboarding_step = step
            user.onboarding_updated_at = utc_now()
