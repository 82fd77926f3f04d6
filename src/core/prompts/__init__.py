# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Prompt templates: registry, rendering and inline fallbacks."""

from src.core.prompts.registry import (
    PromptNotFoundError,
    PromptRegistry,
    ResolvedPrompt,
    render_template,
)

__all__ = [
    "PromptNotFoundError",
    "PromptRegistry",
    "ResolvedPrompt",
    "render_template",
]
