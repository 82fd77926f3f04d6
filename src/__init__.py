"""LingoCoach Backend.

Conversational English-learning backend for Telegram and WhatsApp:
placement onboarding, routed agents and evaluated speaking practice.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
