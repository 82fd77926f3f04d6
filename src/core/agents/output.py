# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Agent output contracts and defensive JSON parsing."""

import json
import re
from enum import Enum
from typing import Any

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class OutputContract(str, Enum):
    """Expected shape of an agent's reply."""

    TEXT = "text"
    JSON = "json"


class AgentOutputError(Exception):
    """Raised when an agent reply does not match its output contract.

    Attributes:
        message: Error description.
        raw: The raw reply, truncated.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        self.message = message
        self.raw = raw if not isinstance(raw, str) else raw[:500]
        super().__init__(message)


def parse_json_object(raw: Any) -> dict[str, Any]:
    """Coerce an LLM reply into a JSON object.

    Dicts pass through. Strings are stripped of Markdown code fences and
    parsed; if that fails, the outermost {...} span is tried.

    Args:
        raw: Reply content, already-parsed or text.

    Returns:
        The parsed object.

    Raises:
        AgentOutputError: If no JSON object can be recovered.
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise AgentOutputError(f"Unsupported reply type: {type(raw).__name__}", raw)

    text = raw.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise AgentOutputError("Reply is not JSON", raw) from None
        try:
            parsed = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise AgentOutputError("Reply is not JSON", raw) from e

    if not isinstance(parsed, dict):
        raise AgentOutputError("Reply JSON is not an object", raw)
    return parsed
