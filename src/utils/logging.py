# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for LingoCoach.

Console output in development, one JSON object per line elsewhere.
The dispatcher binds user_id, platform and input_type for the duration of
a turn, so every event emitted while handling a message carries them.
Learner utterances and model replies can be long; string values are
clipped before rendering.

Example:
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> bind_context(user_id="u-123", platform="telegram")
    >>> logger.info("turn_routed", agent="meta_query")
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from src.core.config.settings import Settings

MAX_VALUE_CHARS = 500

_NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy",
    "asyncio",
    "LiteLLM",
    "litellm",
)


def clip_long_values(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """Shorten string fields longer than MAX_VALUE_CHARS.

    The event name itself is never clipped.
    """
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
            event_dict[key] = f"{value[:MAX_VALUE_CHARS]}... [{len(value)} chars]"
    return event_dict


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Application settings; log_level, debug and environment
            are read.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        clip_long_values,
    ]
    if settings.is_development or settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("src").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Attach fields to every event logged in the current turn."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop the fields bound for the finished turn."""
    structlog.contextvars.clear_contextvars()
