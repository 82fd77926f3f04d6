# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for LingoCoach.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- text: Word counting shared by routing, scoring and persistence
"""

from src.utils.datetime import (
    calendar_days_between,
    ensure_utc,
    is_older_than,
    utc_now,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging
from src.utils.text import count_words

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "calendar_days_between",
    "is_older_than",
    # Text
    "count_words",
]
