# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for OnboardingStateStore."""

from datetime import timedelta

import pytest

from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.state import OnboardingState, OnboardingStep
from src.domains.onboarding.state_store import (
    OnboardingStateError,
    OnboardingStateStore,
    state_key,
)
from src.infrastructure.cache.redis_client import RedisError
from src.utils.datetime import utc_now


@pytest.fixture
def store(cache, session_factory) -> OnboardingStateStore:
    return OnboardingStateStore(cache, session_factory, ttl_seconds=600, expiry_hours=2)


def level_test_state(cursor: int = 2) -> OnboardingState:
    return OnboardingState(
        step=OnboardingStep.LEVEL_TEST,
        questions=level_test_questions(),
        cursor=cursor,
    )


class TestPut:
    """Tests for saving state."""

    @pytest.mark.asyncio
    async def test_writes_cache_and_backup(self, store, cache, onboarding_user) -> None:
        await store.put(onboarding_user.id, level_test_state())

        key = state_key(onboarding_user.id)
        assert cache.data[key]["step"] == "level_test"
        assert cache.data[key]["cursor"] == 2
        assert cache.expirations[key] == 600
        assert onboarding_user.onboarding_step == "level_test"
        assert onboarding_user.onboarding_updated_at is not None

    @pytest.mark.asyncio
    async def test_cache_failure_is_partial(self, store, cache, onboarding_user) -> None:
        cache.error = RedisError("redis down")

        await store.put(onboarding_user.id, OnboardingState(step=OnboardingStep.GOAL))

        assert onboarding_user.onboarding_step == "goal"

    @pytest.mark.asyncio
    async def test_backup_failure_is_partial(self, store, cache) -> None:
        await store.put("missing-user", OnboardingState(step=OnboardingStep.GOAL))

        assert cache.data[state_key("missing-user")]["step"] == "goal"

    @pytest.mark.asyncio
    async def test_both_fail(self, store, cache) -> None:
        cache.error = RedisError("redis down")

        with pytest.raises(OnboardingStateError) as exc_info:
            await store.put("missing-user", OnboardingState(step=OnboardingStep.GOAL))

        assert len(exc_info.value.errors) == 2


class TestGet:
    """Tests for loading state."""

    @pytest.mark.asyncio
    async def test_cached_state(self, store, onboarding_user) -> None:
        await store.put(onboarding_user.id, level_test_state(cursor=3))

        state = await store.get(onboarding_user.id)

        assert state.step is OnboardingStep.LEVEL_TEST
        assert state.cursor == 3
        assert len(state.questions) == 5

    @pytest.mark.asyncio
    async def test_no_state(self, store) -> None:
        assert await store.get("unknown") is None

    @pytest.mark.asyncio
    async def test_invalid_cache_entry_falls_back(self, store, cache, onboarding_user) -> None:
        cache.data[state_key(onboarding_user.id)] = {"step": "dancing"}
        onboarding_user.onboarding_step = "interests"
        onboarding_user.onboarding_updated_at = utc_now()

        state = await store.get(onboarding_user.id)

        assert state.step is OnboardingStep.INTERESTS

    @pytest.mark.asyncio
    async def test_rebuilds_level_test_from_backup(self, store, cache, onboarding_user) -> None:
        onboarding_user.onboarding_step = "level_test"
        onboarding_user.onboarding_updated_at = utc_now() - timedelta(minutes=30)

        state = await store.get(onboarding_user.id)

        assert state.step is OnboardingStep.LEVEL_TEST
        assert state.cursor == 0
        assert state.responses == []
        assert len(state.questions) == 5
        assert cache.data[state_key(onboarding_user.id)]["step"] == "level_test"

    @pytest.mark.asyncio
    async def test_cache_unavailable_uses_backup(self, store, cache, onboarding_user) -> None:
        cache.error = RedisError("redis down")
        onboarding_user.onboarding_step = "goal"
        onboarding_user.onboarding_updated_at = utc_now()

        state = await store.get(onboarding_user.id)

        assert state.step is OnboardingStep.GOAL

    @pytest.mark.asyncio
    async def test_expired_cache_and_backup(self, store, cache, onboarding_user) -> None:
        stale = OnboardingState(step=OnboardingStep.GOAL)
        stale.updated_at = utc_now() - timedelta(hours=3)
        cache.data[state_key(onboarding_user.id)] = stale.model_dump(mode="json")
        onboarding_user.onboarding_step = "goal"
        onboarding_user.onboarding_updated_at = utc_now() - timedelta(hours=3)

        assert await store.get(onboarding_user.id) is None

    @pytest.mark.asyncio
    async def test_backup_without_timestamp(self, store, onboarding_user) -> None:
        onboarding_user.onboarding_step = "goal"
        onboarding_user.onboarding_updated_at = None

        assert await store.get(onboarding_user.id) is None

    @pytest.mark.asyncio
    async def test_completed_backup(self, store, onboarding_user) -> None:
        onboarding_user.onboarding_step = "complete"
        onboarding_user.onboarding_updated_at = utc_now()

        assert await store.get(onboarding_user.id) is None


class TestDelete:
    """Tests for deleting state."""

    @pytest.mark.asyncio
    async def test_clears_both(self, store, cache, onboarding_user) -> None:
        await store.put(onboarding_user.id, OnboardingState(step=OnboardingStep.GOAL))

        await store.delete(onboarding_user.id)

        assert state_key(onboarding_user.id) not in cache.data
        assert onboarding_user.onboarding_updated_at is None

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, store, cache, session_factory) -> None:
        cache.error = RedisError("redis down")
        session_factory.session.fail_on_get = RuntimeError("db down")

        await store.delete("user-1")
