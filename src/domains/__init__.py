# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for LingoCoach.

This package contains domain services that encapsulate business logic.

Domains:
    conversation: Conversation log and inbound input transcription.
    learning: Practice sessions, XP, streaks and level-up analytics.
    onboarding: Placement test and profile set-up state machine.
    user: Learner lookup and creation by platform id.
"""
