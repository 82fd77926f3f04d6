# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Onboarding state machine.

    welcome -> level_test -> interests -> goal -> complete

Steps only move forward. level_test stays on its step until every
placement question is answered. The user's onboarding_step decides which
handler runs. The OnboardingState carries the data between messages.

A non-welcome step without a recoverable state sends a restart notice
and re-enters welcome. Any other failure sends the step's recovery
message and reports success=False instead of raising.

Example:
    >>> machine = OnboardingStateMachine(store, scorer, transcriber, gateway, get_session)
    >>> result = await machine.process(user, "Hello", "telegram", "text")
    >>> result.next_step
    'level_test'
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional, Protocol

from src.domains.conversation.inputs import InputTranscriber
from src.domains.learning.cefr import describe_level, level_for_score
from src.domains.onboarding import messages
from src.domains.onboarding.extraction import extract_interests, extract_learning_goal
from src.domains.onboarding.questions import level_test_questions
from src.domains.onboarding.scoring import AnswerScorer
from src.domains.onboarding.state import OnboardingState, OnboardingStep, PlacementAnswer
from src.domains.onboarding.state_store import OnboardingStateStore
from src.domains.user.service import UnsupportedPlatformError, UserNotFoundError
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import SUPPORTED_PLATFORMS, LevelTest, User
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class InvalidOnboardingStepError(Exception):
    """Raised when a user's onboarding step has no handler."""

    def __init__(self, step: str) -> None:
        self.step = step
        super().__init__(f"Invalid onboarding step: {step}")


class MessageSender(Protocol):
    async def send_message(
        self,
        user_id: str,
        platform: str,
        *,
        audio_url: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None: ...


@dataclass
class OnboardingResult:
    """Outcome of one onboarding message.

    Attributes:
        success: False when the step failed and a recovery notice was sent.
        next_step: Step the user is on after this message.
        message: Short description for logs.
        level: Level determined by the placement test.
        interests: Interests collected.
        goal: Learning goal collected.
    """

    success: bool
    next_step: str
    message: str
    level: Optional[str] = None
    interests: list[str] = field(default_factory=list)
    goal: Optional[str] = None


StepHandler = Callable[[User, OnboardingState, str, str], Awaitable[OnboardingResult]]


class OnboardingStateMachine:
    """Drives a user through onboarding, one message at a time."""

    def __init__(
        self,
        store: OnboardingStateStore,
        scorer: AnswerScorer,
        transcriber: InputTranscriber,
        gateway: MessageSender,
        session_factory: SessionFactory,
    ) -> None:
        self._store = store
        self._scorer = scorer
        self._transcriber = transcriber
        self._gateway = gateway
        self._session_factory = session_factory
        self._handlers: dict[str, StepHandler] = {
            OnboardingStep.LEVEL_TEST.value: self.handle_level_test,
            OnboardingStep.INTERESTS.value: self.handle_interests,
            OnboardingStep.GOAL.value: self.handle_goal,
        }

    async def process(
        self,
        user: User,
        content: str,
        platform: str,
        input_type: str = "text",
    ) -> OnboardingResult:
        """Handle one inbound message from a user in onboarding.

        Args:
            user: The user, with is_onboarding set.
            content: Message text, or an audio blob reference.
            platform: "telegram" or "whatsapp".
            input_type: "text" or "audio".

        Returns:
            OnboardingResult; success=False after a recovery notice.

        Raises:
            UnsupportedPlatformError: For any other platform.
        """
        if platform not in SUPPORTED_PLATFORMS:
            raise UnsupportedPlatformError(platform)

        step = user.onboarding_step
        logger.info("Processing onboarding step: user=%s, step=%s", user.id, step)

        if step == OnboardingStep.COMPLETE.value or not user.is_onboarding:
            return OnboardingResult(
                True, OnboardingStep.COMPLETE.value, "Onboarding already complete"
            )

        try:
            if step == OnboardingStep.WELCOME.value:
                return await self.handle_welcome(user, platform)

            handler = self._handlers.get(step)
            if handler is None:
                raise InvalidOnboardingStepError(step)

            state = await self._store.get(user.id)
            if state is None:
                logger.warning("No onboarding state found, restarting: user=%s", user.id)
                await self._send(user.id, platform, messages.restart_message(user.first_name))
                return await self.handle_welcome(user, platform)

            text = await self._transcriber.to_text(input_type, content)
            return await handler(user, state, text, platform)
        except Exception as e:
            logger.error(
                "Error processing onboarding step: user=%s, step=%s, error=%s",
                user.id,
                step,
                e,
            )
            await self._send_recovery(user.id, platform, step)
            return OnboardingResult(False, step, f"Step failed: {type(e).__name__}")

    async def handle_welcome(self, user: User, platform: str) -> OnboardingResult:
        """Start the placement test."""
        questions = level_test_questions()
        now = utc_now()
        state = OnboardingState(
            step=OnboardingStep.LEVEL_TEST,
            questions=questions,
            cursor=0,
            started_at=now,
            created_at=now,
            updated_at=now,
        )
        await self._store.put(user.id, state)
        user.onboarding_step = OnboardingStep.LEVEL_TEST.value

        await self._send(
            user.id, platform, messages.welcome_message(user.first_name, questions[0].question)
        )
        return OnboardingResult(True, OnboardingStep.LEVEL_TEST.value, "Level test started")

    async def handle_level_test(
        self, user: User, state: OnboardingState, text: str, platform: str
    ) -> OnboardingResult:
        """Score one answer; ask the next question or finish the test."""
        if not state.questions:
            state.questions = level_test_questions()
        cursor = min(state.cursor, len(state.questions) - 1)
        question = state.questions[cursor]

        evaluation = await self._scorer.score_response(text, question)
        state.responses.append(
            PlacementAnswer(question=question, transcription=text, evaluation=evaluation)
        )

        next_cursor = cursor + 1
        if next_cursor >= len(state.questions):
            return await self._complete_level_test(user, state, platform)

        state.cursor = next_cursor
        await self._store.put(user.id, state.touch())
        await self._send(
            user.id,
            platform,
            messages.next_question_message(state.questions[next_cursor].question),
        )
        return OnboardingResult(True, OnboardingStep.LEVEL_TEST.value, "Next question sent")

    async def _complete_level_test(
        self, user: User, state: OnboardingState, platform: str
    ) -> OnboardingResult:
        scores = [answer.evaluation.overall for answer in state.responses]
        average = sum(scores) / len(scores)
        level = level_for_score(average)

        async with self._session_factory() as session:
            row = await session.get(User, user.id)
            if row is None:
                raise UserNotFoundError(user.id)
            row.level = level
            session.add(
                LevelTest(
                    user_id=user.id,
                    test_type="initial",
                    result_level=level,
                    questions=[a.question.model_dump(mode="json") for a in state.responses],
                    responses=[
                        {
                            "transcription": a.transcription,
                            "evaluation": a.evaluation.model_dump(mode="json"),
                            "timestamp": a.timestamp.isoformat(),
                        }
                        for a in state.responses
                    ],
                    overall_score=average,
                    completed=True,
                    completed_at=utc_now(),
                )
            )
        user.level = level

        now = utc_now()
        await self._store.put(
            user.id,
            OnboardingState(
                step=OnboardingStep.INTERESTS,
                temp_level=level,
                started_at=state.started_at,
                created_at=now,
                updated_at=now,
            ),
        )
        user.onboarding_step = OnboardingStep.INTERESTS.value

        await self._send(
            user.id, platform, messages.level_result_message(level, describe_level(level))
        )
        logger.info(
            "Level test completed: user=%s, level=%s, average=%.1f", user.id, level, average
        )
        return OnboardingResult(
            True, OnboardingStep.INTERESTS.value, "Level test completed", level=level
        )

    async def handle_interests(
        self, user: User, state: OnboardingState, text: str, platform: str
    ) -> OnboardingResult:
        """Store interest categories and ask for the learning goal."""
        interests = extract_interests(text)

        async with self._session_factory() as session:
            row = await session.get(User, user.id)
            if row is None:
                raise UserNotFoundError(user.id)
            row.interests = interests
        user.interests = interests

        state.step = OnboardingStep.GOAL
        state.interests = interests
        await self._store.put(user.id, state.touch())
        user.onboarding_step = OnboardingStep.GOAL.value

        await self._send(user.id, platform, messages.goal_question_message(interests))
        return OnboardingResult(
            True, OnboardingStep.GOAL.value, "Interests saved", interests=interests
        )

    async def handle_goal(
        self, user: User, state: OnboardingState, text: str, platform: str
    ) -> OnboardingResult:
        """Store the learning goal and finish onboarding."""
        goal = extract_learning_goal(text)

        async with self._session_factory() as session:
            row = await session.get(User, user.id)
            if row is None:
                raise UserNotFoundError(user.id)
            row.learning_goal = goal
            row.is_onboarding = False
            row.onboarding_step = OnboardingStep.COMPLETE.value
            level = row.level
            interests = list(row.interests or [])

        user.learning_goal = goal
        user.is_onboarding = False
        user.onboarding_step = OnboardingStep.COMPLETE.value

        await self._store.delete(user.id)
        await self._send(user.id, platform, messages.completion_message(level, interests, goal))

        logger.info("Onboarding completed: user=%s, goal=%s", user.id, goal)
        return OnboardingResult(
            True,
            OnboardingStep.COMPLETE.value,
            "Onboarding completed",
            level=level,
            interests=interests,
            goal=goal,
        )

    async def _send(self, user_id: str, platform: str, text: str) -> None:
        await self._gateway.send_message(user_id, platform, text=text)

    async def _send_recovery(self, user_id: str, platform: str, step: str) -> None:
        try:
            await self._send(user_id, platform, messages.recovery_message(step))
        except Exception as e:
            logger.error("Failed to send onboarding recovery message to %s: %s", user_id, e)
