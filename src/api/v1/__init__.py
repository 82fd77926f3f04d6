# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    messages: Normalized inbound chat messages.
"""

from fastapi import APIRouter

from src.api.v1 import messages

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(messages.router, prefix="/messages", tags=["Messages"])

__all__ = ["router"]
