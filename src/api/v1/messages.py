# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inbound message endpoint.

Platform webhooks are parsed upstream; this endpoint receives the
normalized message, makes sure the user exists and hands the message to
the dispatcher in the background.

Example:
    POST /api/v1/messages
    {
        "platform": "telegram",
        "external_id": "123456789",
        "first_name": "María",
        "input_type": "audio",
        "content": "https://files.example.com/voice/abc.ogg"
    }
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_dispatcher, get_user_service
from src.core.orchestration.dispatcher import Dispatcher
from src.domains.user.service import UnsupportedPlatformError, UserService

logger = logging.getLogger(__name__)

router = APIRouter()


class InboundMessageRequest(BaseModel):
    """A normalized inbound chat message."""

    platform: Literal["telegram", "whatsapp"]
    external_id: str = Field(min_length=1, max_length=64)
    first_name: Optional[str] = Field(None, max_length=100)
    input_type: Literal["text", "audio"] = "text"
    content: str = Field(min_length=1)


class InboundMessageResponse(BaseModel):
    """Acknowledgement for an accepted message."""

    accepted: bool = True
    user_id: str
    created: bool


@router.post(
    "",
    response_model=InboundMessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def receive_message(
    request: InboundMessageRequest,
    background_tasks: BackgroundTasks,
    users: UserService = Depends(get_user_service),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> InboundMessageResponse:
    """Accept a message and process it in the background.

    Returns:
        InboundMessageResponse with the resolved user id.

    Raises:
        HTTPException: 422 for unsupported platforms.
    """
    try:
        user, created = await users.get_or_create_by_platform(
            request.platform, request.external_id, request.first_name
        )
    except UnsupportedPlatformError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e

    if created:
        logger.info("New user registered: platform=%s, user=%s", request.platform, user.id)

    background_tasks.add_task(
        dispatcher.handle,
        user.id,
        request.input_type,
        request.content,
        request.platform,
    )
    return InboundMessageResponse(user_id=user.id, created=created)
