# utils/normalizer.py
"""
Clean up LLM output before anything interprets it.

The gateway often wraps JSON in markdown code fences, sometimes tagged with a
language name, and often nests the payload under a "lessonPlan" or
"storyLessonPlan" key. `normalize` removes both kinds of noise.

Only JSON objects and arrays count as parsed output. Anything else (prose,
bare numbers, quoted strings) comes back as the fence-stripped text so the
caller can decide whether plain text is acceptable.

Fence stripping and unwrapping run until nothing changes, which makes
normalize(normalize(x)) == normalize(x) for every input.
"""

import json
import logging
import re
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

WRAPPER_KEYS = ("lessonPlan", "storyLessonPlan")

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```\s*$")

Normalized = Union[Dict[str, Any], List[Any], str]


def strip_code_fences(text: str) -> str:
    """Trim whitespace and remove surrounding ``` fences, repeatedly."""
    cleaned = text.strip()
    while cleaned.startswith("```"):
        without_open = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", without_open, count=1).strip()
    return cleaned


def unwrap(data: Any) -> Any:
    """Remove known envelope keys until the payload itself is reached."""
    while isinstance(data, dict):
        wrapped = next((data[k] for k in WRAPPER_KEYS if isinstance(data.get(k), dict)), None)
        if wrapped is None:
            break
        data = wrapped
    return data


def try_parse_json(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Parse text as a JSON object or array; None for anything else."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    if isinstance(parsed, (dict, list)):
        return parsed
    return None


def normalize(value: Union[str, Dict[str, Any], List[Any]]) -> Normalized:
    """
    Normalize raw gateway output.

    Accepts the raw text, or an already-parsed object (so normalized output can be fed back in).
    Returns the unwrapped object/array when the text is JSON, otherwise the fence-stripped text.
    """
    if isinstance(value, (dict, list)):
        return unwrap(value)

    cleaned = strip_code_fences(value)
    parsed = try_parse_json(cleaned)
    if parsed is None:
        logger.debug("Response is not JSON; returning fence-stripped text (%d chars)", len(cleaned))
        return cleaned
    return unwrap(parsed)
