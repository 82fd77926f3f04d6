# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain: learner lookup and creation by platform id."""

from src.domains.user.service import (
    UnsupportedPlatformError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)

__all__ = [
    "UnsupportedPlatformError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
]
