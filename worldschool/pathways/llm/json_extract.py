"""Tolerant JSON extraction from generative text output."""

import json
import re
from typing import Any

from worldschool.pathways.errors import GenerationParseError

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")


def extract_json(text: str) -> Any:
    """Parse JSON from model output, tolerating markdown code fences.

    A ```json fenced block wins over a bare ``` block, which wins over the
    raw text.

    Args:
        text: Raw text returned by the generative service

    Returns:
        Parsed JSON value

    Raises:
        GenerationParseError: If no parseable JSON is found
    """
    if not text or not text.strip():
        raise GenerationParseError("Generative service returned empty output")

    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    candidate = match.group(1) if match else text.strip()

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise GenerationParseError(
            "Failed to parse generated JSON",
            [f"{e.msg} at line {e.lineno} column {e.colno}", f"response preview: {candidate[:200]}"],
        ) from e
