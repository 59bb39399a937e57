import json
import os
from typing import Any, Dict, List

from mothermath.core.config import CURRICULUM_PATH

_cached_curricula: Dict[str, Dict[str, Any]] = {}


def load_curriculum(region_name: str = "Cameroon") -> Dict[str, Any]:
    """
    Load curriculum configuration from JSON files.

    - Accepts the `region_name` (e.g., "Cameroon").
    - Caches results in `_cached_curricula` to avoid repeated file reads.
    - Expects the JSON file to contain:
        - region (string)
        - curriculum (string)
        - levels (list of class levels)
    - Adds default values for optional keys like the default scaffolds, math keywords
      and interview options if they are missing, so downstream code never breaks.
    """
    key = region_name.lower()
    if key in _cached_curricula:
        return _cached_curricula[key]

    file_path = os.path.join(CURRICULUM_PATH, f"{key}.json")
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Curriculum '{region_name}' not found")

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    # Validate required top-level keys
    for k in ["region", "curriculum", "levels"]:
        if k not in data:
            raise ValueError(f"Curriculum JSON missing key: {k}")

    # Provide safe defaults for optional fields
    data.setdefault("lesson_sections", [])
    data.setdefault("story_sections", [])
    data.setdefault("math_keywords", ["math", "mathematics", "number"])
    interview = data.setdefault("interview", {})
    interview.setdefault("default_role", "Primary School Teacher")
    interview.setdefault("focuses", ["Behavioral", "Technical", "Mixed"])
    interview.setdefault("time_frames", [10, 15, 20, 30])

    # Cache for reuse
    _cached_curricula[key] = data
    return data


def math_keywords() -> List[str]:
    return load_curriculum()["math_keywords"]


def is_math_topic(topic: str) -> bool:
    """True when the topic mentions at least one mathematics keyword."""
    topic_lower = topic.lower()
    return any(keyword in topic_lower for keyword in math_keywords())
