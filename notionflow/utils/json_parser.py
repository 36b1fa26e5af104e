"""
JSON parsing utilities for LLM responses.

Models often wrap JSON in markdown code fences (```json ... ```) even
when asked not to. Responses are fence-stripped, parsed, then validated
against the expected shape. Anything that fails is an error; there is
no partial credit.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OPENING_FENCE = re.compile(r"^```[\w-]*\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```\s*$")


class AIResponseError(ValueError):
    """Raised when model output is not JSON of the expected shape."""


def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence.

    Handles:
    - ```json ... ```
    - ``` ... ```
    - ```<any language tag> ... ```

    Text that does not start with a fence is only trimmed.

    Args:
        text: Raw model output

    Returns:
        The fenced content, trimmed
    """
    trimmed = text.strip()
    if trimmed.startswith("```"):
        trimmed = _OPENING_FENCE.sub("", trimmed, count=1)
        trimmed = _CLOSING_FENCE.sub("", trimmed, count=1)
    return trimmed.strip()


def parse_json_as(text: str, expected: type[T] | Any, context: str) -> T:
    """
    Fence-strip, parse and validate model output.

    Args:
        text: Raw model output
        expected: Type the JSON must validate against (e.g. list[PagePlan])
        context: Message prefix used when parsing fails

    Returns:
        The validated value

    Raises:
        AIResponseError: If the text is not JSON or does not match
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"{context}: invalid JSON: {cleaned[:100]}...")
        raise AIResponseError(f"{context}: {e}") from e

    try:
        return TypeAdapter(expected).validate_python(data)
    except PydanticValidationError as e:
        raise AIResponseError(f"{context}: {e}") from e


__all__ = [
    "AIResponseError",
    "parse_json_as",
    "strip_code_fences",
]
