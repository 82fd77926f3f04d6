# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Layer for LingoCoach.

This module provides the FastAPI application and its HTTP endpoints.
"""

from src.api.app import create_app

__all__ = ["create_app"]
