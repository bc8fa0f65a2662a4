"""Shared helpers for turning raw LLM output into Python values."""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```[\s\S]*?```")


class ParseFailure(ValueError):
    """Raised when LLM output breaks a structural rule that cannot be defaulted.

    The offending text is kept on `raw` for diagnostics.
    """

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


def strip_code_fence(text: str) -> str:
    """Unwrap output that arrives inside a Markdown code fence."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned.strip()


def strip_fenced_blocks(text: str) -> str:
    """Drop whole fenced blocks (and any stray fence markers)."""
    return _FENCED_BLOCK_RE.sub("", text).replace("```", "").strip()


def parse_json_object(text: str) -> dict | None:
    """Parse a JSON object from LLM output, stripping markdown fences.

    Returns None when the text is not JSON or decodes to something other
    than an object.
    """
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("LLM output is not valid JSON: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("LLM output is JSON but not an object: %s", type(data).__name__)
        return None
    return data


def non_empty_lines(text: str) -> list[str]:
    return [l.strip() for l in text.splitlines() if l.strip()]


def text_field(data: dict, key: str) -> str | None:
    """Return a presentation field as text, or None if missing or blank.

    Non-string scalars are stringified; containers count as missing.
    """
    value: Any = data.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = value.strip() if isinstance(value, str) else str(value)
    return text or None
