# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outbound messaging to chat platforms."""

from src.infrastructure.messaging.gateway import (
    MessagingError,
    PlatformMessagingGateway,
    UserLookup,
)

__all__ = [
    "MessagingError",
    "PlatformMessagingGateway",
    "UserLookup",
]
