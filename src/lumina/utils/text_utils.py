"""Text processing utilities for generated output."""

import json
import re
from typing import Any

# Patterns for removing thinking/reasoning blocks from LLM output
THINK_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<thinking>.*?</thinking>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def strip_think(text: str) -> str:
    """Remove thinking/reasoning tag blocks from LLM output."""
    result = text
    for pattern in THINK_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse a JSON object out of model output.

    Tries, in order: the whole text, the first ```json fenced block, and
    the span between the first "{" and the last "}".

    Returns:
        Parsed dict, or None if no strategy yields a JSON object
    """
    content = strip_think(text)

    candidates = [content]
    fenced = _FENCED_JSON.search(content)
    if fenced:
        candidates.append(fenced.group(1).strip())
    start = content.find("{")
    end = content.rfind("}") + 1
    if start >= 0 and end > start:
        candidates.append(content[start:end])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    return None
