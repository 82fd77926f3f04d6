# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Text helpers."""


def count_words(text: str | None) -> int:
    """Count whitespace-separated words.

    Args:
        text: Input text; None counts as empty.

    Returns:
        Number of non-empty tokens.
    """
    if not text:
        return 0
    return len(text.split())
