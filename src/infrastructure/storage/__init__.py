# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Blob storage for audio artifacts."""

from src.infrastructure.storage.blob import LocalBlobStorage, StorageError

__all__ = ["LocalBlobStorage", "StorageError"]
