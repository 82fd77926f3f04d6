# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outbound messaging gateway for Telegram and WhatsApp.

The gateway resolves the user's external id for the target platform and
sends an optional voice note followed by an optional text message.

Telegram uses the Bot API (sendVoice, sendMessage). WhatsApp uses the
Cloud API messages endpoint (audio, text).
"""

import logging
from typing import TYPE_CHECKING, Any, Optional, Protocol

import httpx

if TYPE_CHECKING:
    from src.core.config.settings import MessagingSettings
    from src.infrastructure.database.models import User

logger = logging.getLogger(__name__)

VOICE_CAPTION = "🎧 Here's your personalized feedback!"


class MessagingError(Exception):
    """Raised when a message cannot be delivered.

    Attributes:
        message: Human-readable error description.
        platform: Target platform.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.platform = platform
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class UserLookup(Protocol):
    """Anything that can load a user by id."""

    async def get_by_id(self, user_id: str) -> Optional["User"]: ...


class PlatformMessagingGateway:
    """Sends replies to users on their messaging platform.

    Example:
        gateway = PlatformMessagingGateway(settings.messaging, user_service)
        await gateway.send_message(user.id, "telegram", text="Hi!")
    """

    def __init__(
        self,
        settings: "MessagingSettings",
        users: UserLookup,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            settings: Messaging settings with tokens and endpoints.
            users: User lookup used to resolve platform ids.
            client: Optional shared HTTP client. One is created lazily otherwise.
        """
        self._settings = settings
        self._users = users
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send_message(
        self,
        user_id: str,
        platform: str,
        *,
        audio_url: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        """Send a voice note and/or a text message to a user.

        Args:
            user_id: Internal user id.
            platform: "telegram" or "whatsapp".
            audio_url: Public URL of an audio file to send as voice.
            text: Text message body.

        Raises:
            MessagingError: If nothing to send, the user or platform id
                cannot be resolved, or the platform API call fails.
        """
        if not audio_url and not text:
            raise MessagingError("Either audio_url or text must be provided", platform)

        if platform not in ("telegram", "whatsapp"):
            raise MessagingError(f"Unsupported platform: {platform}", platform)

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise MessagingError(f"User not found for sending message: {user_id}", platform)

        recipient = user.platform_id(platform)
        if not recipient:
            raise MessagingError(f"User {user_id} does not have a {platform} id", platform)

        try:
            if platform == "telegram":
                await self._send_telegram(recipient, audio_url, text)
            else:
                await self._send_whatsapp(recipient, audio_url, text)
        except httpx.HTTPError as e:
            logger.error(
                "Failed to send %s message: user=%s, error=%s", platform, user_id, e
            )
            raise MessagingError(f"Failed to send {platform} message", platform, e) from e

        logger.debug(
            "Message sent: user=%s, platform=%s, audio=%s, text=%s",
            user_id,
            platform,
            bool(audio_url),
            bool(text),
        )

    async def _post(
        self, url: str, payload: dict[str, Any], headers: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        response = await self._get_client().post(url, json=payload, headers=headers)
        response.raise_for_status()
        return response.json()

    async def _send_telegram(
        self, chat_id: str, audio_url: Optional[str], text: Optional[str]
    ) -> None:
        base = self._settings.telegram_api_url
        if audio_url:
            await self._post(
                f"{base}/sendVoice",
                {"chat_id": chat_id, "voice": audio_url, "caption": VOICE_CAPTION},
            )
        if text:
            # No parse_mode: generated text is not guaranteed to be valid Markdown
            await self._post(f"{base}/sendMessage", {"chat_id": chat_id, "text": text})

    async def _send_whatsapp(
        self, phone_number: str, audio_url: Optional[str], text: Optional[str]
    ) -> None:
        url = f"{self._settings.whatsapp_api_url}/messages"
        headers = {
            "Authorization": f"Bearer {self._settings.whatsapp_access_token.get_secret_value()}",
        }
        if audio_url:
            await self._post(
                url,
                {
                    "messaging_product": "whatsapp",
                    "to": phone_number,
                    "type": "audio",
                    "audio": {"link": audio_url},
                },
                headers,
            )
        if text:
            await self._post(
                url,
                {
                    "messaging_product": "whatsapp",
                    "to": phone_number,
                    "type": "text",
                    "text": {"body": text},
                },
                headers,
            )
