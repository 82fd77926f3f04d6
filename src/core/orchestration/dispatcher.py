# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resilient dispatcher.

The outer boundary for one inbound message. It resolves the user, then
either hands the message to onboarding or records it, runs the
conversation workflow, records the reply and sends it.

handle() never raises. Anything that escapes a stage is logged and
turned into a fixed apology on the user's platform. No internal error
text reaches the user.
"""

from typing import Any, Optional, Protocol
from uuid import uuid4

from src.core.orchestration.workflows.conversation import ConversationWorkflow
from src.domains.conversation.inputs import InputTranscriber
from src.domains.conversation.store import ConversationStore
from src.domains.onboarding.service import OnboardingResult, OnboardingStateMachine
from src.domains.user.service import UserService
from src.infrastructure.database.models import User
from src.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

APOLOGY_MESSAGE = (
    "I'm sorry, I'm having technical difficulties. Please try again in a moment."
)
EMPTY_REPLY_MESSAGE = "I'm processing your message. Please give me a moment."


class MessageSender(Protocol):
    async def send_message(
        self,
        user_id: str,
        platform: str,
        *,
        audio_url: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None: ...


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str) -> bytes: ...


class BlobStore(Protocol):
    async def put(self, data: bytes, key: str) -> str: ...


class Dispatcher:
    """Handles inbound messages end to end.

    Example:
        >>> dispatcher = Dispatcher(users, onboarding, transcriber, store,
        ...                         workflow, gateway)
        >>> await dispatcher.handle(user.id, "text", "Hello Alex", "telegram")
    """

    def __init__(
        self,
        users: UserService,
        onboarding: OnboardingStateMachine,
        transcriber: InputTranscriber,
        store: ConversationStore,
        workflow: ConversationWorkflow,
        gateway: MessageSender,
        speech: Optional[SpeechSynthesizer] = None,
        storage: Optional[BlobStore] = None,
        reply_with_audio: bool = False,
    ) -> None:
        self._users = users
        self._onboarding = onboarding
        self._transcriber = transcriber
        self._store = store
        self._workflow = workflow
        self._gateway = gateway
        self._speech = speech
        self._storage = storage
        self._reply_with_audio = reply_with_audio and speech is not None and storage is not None

    async def handle(
        self,
        user_id: str,
        input_type: str,
        content: str,
        platform: str,
    ) -> Optional[Any]:
        """Process one inbound message. Never raises.

        Args:
            user_id: Id of an existing user.
            input_type: "text" or "audio".
            content: Message text, or the audio blob reference.
            platform: "telegram" or "whatsapp".

        Returns:
            The OnboardingResult for onboarding users, the final workflow
            state otherwise, or None after a failure.
        """
        bind_context(user_id=user_id, platform=platform, input_type=input_type)
        try:
            user = await self._users.require(user_id)

            if user.is_onboarding:
                result = await self._onboarding.process(user, content, platform, input_type)
                self._log_onboarding(result)
                return result

            return await self._converse(user, input_type, content, platform)
        except Exception as e:
            logger.error(
                "dispatch_failed",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            await self._apologize(user_id, platform)
            return None
        finally:
            clear_context()

    async def _converse(
        self, user: User, input_type: str, content: str, platform: str
    ) -> dict[str, Any]:
        text = await self._transcriber.to_text(input_type, content)
        stored = await self._store.append(user.id, "user", text)
        # only skip the newest row when it is the turn being answered
        history = await self._store.window(user.id, exclude_latest=stored)

        state = await self._workflow.run(
            user,
            platform,
            text,
            history,
            input_reference=content if input_type == "audio" else None,
        )

        agent = state.get("agent")
        reply = (state.get("reply") or "").strip()
        logger.info(
            "turn_routed",
            agent=agent,
            decision_source=state.get("decision_source"),
            reasoning=state.get("reasoning"),
        )

        if reply:
            await self._store.append(user.id, "assistant", reply, agent_name=agent)

        if not state.get("delivered"):
            await self._send_reply(user.id, platform, reply or EMPTY_REPLY_MESSAGE)
        return state

    async def _send_reply(self, user_id: str, platform: str, text: str) -> None:
        audio_url = None
        if self._reply_with_audio:
            audio_url = await self._spoken_reply(user_id, text)
        await self._gateway.send_message(user_id, platform, audio_url=audio_url, text=text)

    async def _spoken_reply(self, user_id: str, text: str) -> Optional[str]:
        try:
            audio = await self._speech.synthesize(text)
            return await self._storage.put(audio, f"replies/{user_id}/{uuid4().hex}.mp3")
        except Exception as e:
            logger.warning("reply_audio_failed", error=str(e))
            return None

    async def _apologize(self, user_id: str, platform: str) -> None:
        try:
            await self._gateway.send_message(user_id, platform, text=APOLOGY_MESSAGE)
        except Exception as e:
            logger.error("apology_failed", error=str(e))

    @staticmethod
    def _log_onboarding(result: OnboardingResult) -> None:
        if result.success:
            logger.info("onboarding_step_processed", next_step=result.next_step)
        else:
            # recovery copy was already sent by the state machine
            logger.warning("onboarding_step_failed", step=result.next_step, detail=result.message)
