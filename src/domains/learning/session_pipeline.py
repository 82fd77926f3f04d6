# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice session pipeline.

One run turns a user utterance into a persisted, evaluated practice
session and delivered feedback:

    transcribe -> evaluate -> feedback script + Spanish summary (parallel)
    -> feedback audio -> atomic persist -> after-commit hooks

Every stage before persistence has its own fallback, so a session is
only lost when the database write fails. Delivery and the level-up
check run after commit and never affect the stored session.

Example:
    >>> pipeline = SessionPipeline(catalog, registry, chain, storage,
    ...                            gateway, get_session, learning, settings.llm)
    >>> result = await pipeline.run(user, PracticeInput(user.id, "telegram", text=text))
    >>> result.evaluation.overall
    78
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional, Protocol
from uuid import uuid4

from src.core.agents.catalog import AgentCatalog
from src.core.config.settings import LLMSettings
from src.core.intelligence.llm.client import Message
from src.core.intelligence.llm.interfaces import AIServices
from src.core.prompts.fallbacks import (
    TEACHER_FEEDBACK_FALLBACK,
    TEACHER_FEEDBACK_TEXT,
    TEXT_SUMMARY_FALLBACK,
    TEXT_SUMMARY_TEXT,
)
from src.core.prompts.registry import PromptRegistry
from src.domains.learning.evaluation import SpeechEvaluation
from src.domains.learning.hooks import AfterCommitHooks
from src.domains.learning.rules import calculate_xp, update_streak
from src.domains.learning.service import LearningService
from src.domains.user.service import UserNotFoundError
from src.infrastructure.database.connection import SessionFactory
from src.infrastructure.database.models import PracticeSession, User, new_uuid
from src.utils.datetime import utc_now
from src.utils.logging import get_logger
from src.utils.text import count_words

logger = get_logger(__name__)

PRACTICE_AGENT = "practice_session"


class BlobStore(Protocol):
    async def put(self, data: bytes, key: str) -> str: ...


class MessageSender(Protocol):
    async def send_message(
        self,
        user_id: str,
        platform: str,
        *,
        audio_url: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None: ...


class SessionPipelineError(Exception):
    """Raised when a session cannot start (no usable input).

    Attributes:
        message: Error description.
        original_error: Underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(message)


@dataclass
class PracticeInput:
    """One practice utterance.

    Attributes:
        user_id: Owning user id.
        platform: Platform the reply goes to.
        text: Text input, or the transcription if already done.
        audio: Raw audio bytes when text is not available.
        input_reference: Blob key or URL of the original input.
        session_type: Session type tag used for XP.
        duration_seconds: Utterance duration, if known.
    """

    user_id: str
    platform: str
    text: Optional[str] = None
    audio: Optional[bytes] = None
    input_reference: Optional[str] = None
    session_type: str = "daily_practice"
    duration_seconds: Optional[float] = None


@dataclass
class PracticeResult:
    """Outcome of a committed practice session."""

    session_id: str
    transcription: str
    evaluation: SpeechEvaluation
    xp_earned: int
    total_xp: int
    streak: int
    feedback_text: str
    summary_text: str
    feedback_audio_url: Optional[str] = None
    delivered: bool = True

    @property
    def reply_text(self) -> str:
        """Text recorded as the assistant turn for this session."""
        return f"{self.feedback_text}\n\n{self.summary_text}"


class SessionPipeline:
    """Runs practice sessions end to end."""

    def __init__(
        self,
        catalog: AgentCatalog,
        registry: PromptRegistry,
        ai: AIServices,
        storage: BlobStore,
        gateway: MessageSender,
        session_factory: SessionFactory,
        learning: LearningService,
        llm_settings: LLMSettings,
        hooks: Optional[AfterCommitHooks] = None,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._ai = ai
        self._storage = storage
        self._gateway = gateway
        self._session_factory = session_factory
        self._learning = learning
        self._settings = llm_settings
        self._hooks = hooks or AfterCommitHooks()

    @property
    def hooks(self) -> AfterCommitHooks:
        return self._hooks

    async def run(self, user: User, practice: PracticeInput) -> PracticeResult:
        """Run one practice session.

        Args:
            user: The practicing user.
            practice: The utterance to evaluate.

        Returns:
            PracticeResult for the committed session.

        Raises:
            SessionPipelineError: If there is no input or transcription fails.
            UserNotFoundError: If the user disappeared before persisting.
            DatabaseError: If the session cannot be persisted.
        """
        transcription = await self._transcribe(practice)
        evaluation = await self._evaluate(user, transcription)
        xp_earned = calculate_xp(
            evaluation.overall,
            user.level,
            practice.session_type,
            practice.duration_seconds,
        )

        values = {
            "cefr_level": user.level,
            "first_name": user.first_name or "",
            "transcription": transcription,
            "evaluation": json.dumps(evaluation.model_dump(), ensure_ascii=False),
            "xp_earned": xp_earned,
        }
        feedback_text, summary_text = await asyncio.gather(
            self._generate(
                user.level,
                "teacher_feedback",
                "alex",
                TEACHER_FEEDBACK_FALLBACK,
                TEACHER_FEEDBACK_TEXT,
                values,
                transcription,
            ),
            self._generate(
                user.level,
                "text_summary",
                "reporter",
                TEXT_SUMMARY_FALLBACK,
                TEXT_SUMMARY_TEXT,
                values,
                transcription,
            ),
        )

        audio_url = await self._feedback_audio(user.id, feedback_text)

        result = await self._persist(
            user.id,
            practice,
            transcription,
            evaluation,
            xp_earned,
            feedback_text,
            summary_text,
            audio_url,
        )

        logger.info(
            "practice_session_completed",
            session_id=result.session_id,
            overall=evaluation.overall,
            fallback_evaluation=evaluation.is_fallback,
            xp_earned=xp_earned,
            streak=result.streak,
        )

        self._hooks.schedule(
            [
                ("deliver_feedback", lambda: self._deliver(practice.platform, user.id, result)),
                (
                    "check_level_up",
                    lambda: self._learning.check_level_up_eligibility(user.id),
                ),
            ]
        )
        return result

    async def _transcribe(self, practice: PracticeInput) -> str:
        if practice.text and practice.text.strip():
            return practice.text.strip()

        if not practice.audio:
            raise SessionPipelineError("Practice input has neither text nor audio")

        try:
            transcription = await self._ai.transcribe(practice.audio)
        except Exception as e:
            logger.error("transcription_failed", user_id=practice.user_id, error=str(e))
            raise SessionPipelineError("Transcription failed", e) from e

        if not transcription:
            raise SessionPipelineError("Transcription is empty")
        return transcription

    async def _evaluate(self, user: User, transcription: str) -> SpeechEvaluation:
        """Evaluate the utterance, or return the fixed fallback evaluation."""
        try:
            agent = self._catalog.get(PRACTICE_AGENT)
            reply = await agent.invoke(
                self._ai,
                level=user.level,
                user_message=transcription,
                variables={
                    "transcription": transcription,
                    "cefr_level": user.level,
                    "first_name": user.first_name or "",
                },
                timeout=self._settings.evaluation_timeout,
            )
            return SpeechEvaluation.model_validate(reply.data)
        except Exception as e:
            logger.warning(
                "evaluation_fallback",
                user_id=user.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return SpeechEvaluation.fallback()

    async def _generate(
        self,
        level: str,
        prompt_type: str,
        persona: str,
        inline_template: str,
        fallback_text: str,
        values: dict[str, Any],
        transcription: str,
    ) -> str:
        """Generate one feedback artifact, or its fixed fallback text."""
        try:
            prompt = self._registry.resolve_or_fallback(
                level, prompt_type, persona, inline_template
            )
            response = await self._ai.complete(
                prompt.render(values),
                [Message("user", transcription)],
            )
            text = response.content.strip()
            if not text:
                raise ValueError("empty completion")
            return text
        except Exception as e:
            logger.warning("feedback_fallback", prompt_type=prompt_type, error=str(e))
            return fallback_text

    async def _feedback_audio(self, user_id: str, feedback_text: str) -> Optional[str]:
        """Synthesize and upload the spoken feedback; None on any failure."""
        try:
            audio = await self._ai.synthesize(feedback_text)
            return await self._storage.put(audio, f"feedback/{user_id}/{uuid4().hex}.mp3")
        except Exception as e:
            logger.warning("feedback_audio_failed", user_id=user_id, error=str(e))
            return None

    async def _persist(
        self,
        user_id: str,
        practice: PracticeInput,
        transcription: str,
        evaluation: SpeechEvaluation,
        xp_earned: int,
        feedback_text: str,
        summary_text: str,
        audio_url: Optional[str],
    ) -> PracticeResult:
        """Write the session and the user's progress in one transaction."""
        async with self._session_factory() as session:
            user = await session.get(User, user_id, with_for_update=True)
            if user is None:
                raise UserNotFoundError(user_id)

            now = utc_now()
            record = PracticeSession(
                id=new_uuid(),
                user_id=user_id,
                session_type=practice.session_type,
                input_reference=practice.input_reference,
                transcription=transcription,
                feedback=evaluation.feedback.model_dump(),
                xp_earned=xp_earned,
                feedback_audio_url=audio_url,
                feedback_text=feedback_text,
                summary_text=summary_text,
                word_count=count_words(transcription),
                duration_seconds=practice.duration_seconds,
                created_at=now,
                **evaluation.score_columns(),
            )
            session.add(record)
            await session.flush()

            # user progress changes only after the session row flushes
            user.streak = update_streak(user.streak, user.last_active_at, now)
            user.xp = (user.xp or 0) + xp_earned
            user.last_active_at = now

            return PracticeResult(
                session_id=record.id,
                transcription=transcription,
                evaluation=evaluation,
                xp_earned=xp_earned,
                total_xp=user.xp,
                streak=user.streak,
                feedback_text=feedback_text,
                summary_text=summary_text,
                feedback_audio_url=audio_url,
            )

    async def _deliver(self, platform: str, user_id: str, result: PracticeResult) -> None:
        if result.feedback_audio_url:
            await self._gateway.send_message(
                user_id,
                platform,
                audio_url=result.feedback_audio_url,
                text=result.summary_text,
            )
        else:
            await self._gateway.send_message(user_id, platform, text=result.reply_text)
