# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

- prompts: default prompt templates for the router and every agent
"""

from src.infrastructure.database.seeds.prompts import DEFAULT_PROMPTS, seed_prompts

__all__ = ["DEFAULT_PROMPTS", "seed_prompts"]
