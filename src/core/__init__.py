# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for LingoCoach.

This package contains the core logic shared by the domains:
- config: Application configuration and settings
- prompts: Prompt registry and rendering
- agents: Agent catalog
- intelligence: LLM, transcription and speech providers
- orchestration: Router, conversation workflow and dispatcher
"""
