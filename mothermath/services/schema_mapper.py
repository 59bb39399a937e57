"""
Schema mapper: normalized gateway output -> typed plan and Markdown preview.

Gateway output is untrusted, so the renderers read plain dicts defensively:
a list field is emitted only when it is present and really a list, scalar
headline fields fall back to "N/A", and sections are rendered in the order
the gateway returned them. Paired teacher/learner lists are padded with
empty entries up to the longer one so no row is ever dropped.
"""

import logging
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import BaseModel, ValidationError

from mothermath.models.lesson_plan import CanonicalLessonPlanDoc, StoryLessonPlan
from mothermath.utils.normalizer import normalize

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PlanInput = Union[Mapping[str, Any], BaseModel]


def _as_dict(data: PlanInput) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        dumped = data.model_dump(by_alias=True, exclude_none=True)
        # Empty lists on a typed model mean "absent", not "present but empty"
        return {k: v for k, v in dumped.items() if v != []}
    return dict(data)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def pad_pairs(left: List[Any], right: List[Any]) -> List[Tuple[str, str]]:
    """Zip two lists to the longer length, filling gaps with empty strings."""
    size = max(len(left), len(right))
    return [
        (_text(left[i]) if i < len(left) else "", _text(right[i]) if i < len(right) else "")
        for i in range(size)
    ]


def _paired_lists(section: Mapping[str, Any], left_key: str, right_key: str) -> Tuple[List[str], List[str]]:
    """
    Return both activity columns padded to the same length.

    A column that is missing entirely (or not a list) stays empty so the caller omits it.
    """
    left = section.get(left_key)
    right = section.get(right_key)
    left = left if isinstance(left, list) else None
    right = right if isinstance(right, list) else None
    if left is None or right is None:
        return [_text(x) for x in left or []], [_text(x) for x in right or []]
    rows = pad_pairs(left, right)
    return [r[0] for r in rows], [r[1] for r in rows]


def _bullets(lines: List[str], items: List[Any]) -> None:
    for item in items:
        lines.append(f"- {_text(item)}")


def _list_block(lines: List[str], heading: str, value: Any) -> None:
    if isinstance(value, list):
        lines.append(f"## {heading}")
        _bullets(lines, value)
        lines.append("")


def _description(value: Any) -> str:
    if isinstance(value, Mapping):
        return _text(value.get("description"))
    return _text(value)


# -------------------------
# Lesson plan
# -------------------------
def lesson_plan_to_markdown(data: PlanInput) -> str:
    """Render a canonical lesson plan (dict or model) as Markdown."""
    data = _as_dict(data)
    lines = [
        f"# Lesson Plan: {data.get('title') or 'N/A'}",
        "",
        f"**Grade Level:** {data.get('gradeLevel') or 'N/A'}",
        f"**Subject:** {data.get('subject') or 'N/A'}",
        f"**Topic:** {data.get('topic') or 'N/A'}",
        "",
    ]

    _list_block(lines, "Lesson Objectives", data.get("lessonObjectives"))
    _list_block(lines, "Materials", data.get("materials"))

    sections = data.get("sections")
    if isinstance(sections, list):
        lines.append("## Lesson Procedure")
        for section in sections:
            if not isinstance(section, Mapping):
                continue
            lines.append(f"### {section.get('title') or 'Section'}")
            lines.append("")
            teacher, learner = _paired_lists(section, "teacherActivities", "learnerActivities")
            if isinstance(section.get("teacherActivities"), list):
                lines.append("**Teacher Activities:**")
                _bullets(lines, teacher)
                lines.append("")
            if isinstance(section.get("learnerActivities"), list):
                lines.append("**Learner Activities:**")
                _bullets(lines, learner)
                lines.append("")

    evaluation = _description(data.get("evaluation"))
    if evaluation:
        lines += ["## Evaluation", evaluation, ""]

    assignment = _description(data.get("assignment"))
    if assignment:
        lines += ["## Assignment", assignment, ""]

    return "\n".join(lines) + "\n"


# -------------------------
# Story lesson plan
# -------------------------
def _character_line(character: Any) -> str:
    if isinstance(character, Mapping):
        return f"- **{_text(character.get('name'))}**: {_text(character.get('description'))}"
    return f"- {_text(character)}"


def story_plan_to_markdown(data: PlanInput) -> str:
    """Render a story lesson plan (dict or model) as Markdown."""
    data = _as_dict(data)
    lines = [
        f"# Story-Based Lesson Plan: {data.get('title') or 'N/A'}",
        "",
        f"**Grade Level:** {data.get('gradeLevel') or 'N/A'}",
        f"**Subject:** {data.get('subject') or 'N/A'}",
        f"**Topic:** {data.get('topic') or 'N/A'}",
        f"**Story Theme:** {data.get('storyTheme') or 'Mathematical Adventure'}",
        "",
    ]

    if data.get("storyOverview"):
        lines += ["## Story Overview", _text(data["storyOverview"]), ""]

    characters = data.get("characters")
    if isinstance(characters, list):
        lines.append("## Main Characters")
        lines.extend(_character_line(c) for c in characters)
        lines.append("")

    if data.get("setting"):
        lines += ["## Setting", _text(data["setting"]), ""]

    _list_block(lines, "Learning Objectives", data.get("lessonObjectives"))
    _list_block(lines, "Materials Needed", data.get("materials"))

    story_sections = data.get("storySections")
    if isinstance(story_sections, list):
        lines += ["## The Mathematical Story", ""]
        for index, section in enumerate(story_sections):
            if not isinstance(section, Mapping):
                continue
            lines.append(f"### {section.get('title') or f'Part {index + 1}'}")
            lines.append("")
            if section.get("storyContent"):
                lines += ["**Story:**", _text(section["storyContent"]), ""]
            if section.get("mathConcept"):
                lines += ["**Math Concept:**", _text(section["mathConcept"]), ""]
            guidance, activities = _paired_lists(section, "teacherGuidance", "studentActivities")
            if isinstance(section.get("teacherGuidance"), list):
                lines.append("**Teacher Guidance:**")
                _bullets(lines, guidance)
                lines.append("")
            if isinstance(section.get("studentActivities"), list):
                lines.append("**Student Activities:**")
                _bullets(lines, activities)
                lines.append("")

    _list_block(lines, "Practice Activities", data.get("practiceActivities"))

    assessment = _description(data.get("assessment"))
    if assessment:
        lines += ["## Assessment", assessment, ""]

    _list_block(lines, "Extension Activities", data.get("extensionActivities"))

    if data.get("culturalConnections"):
        lines += ["## Cultural Connections", _text(data["culturalConnections"]), ""]

    return "\n".join(lines) + "\n"


# -------------------------
# Text entry points
# -------------------------
def format_ai_response_as_markdown(content: str) -> str:
    """Normalize raw gateway text and render it; plain text comes back unchanged."""
    normalized = normalize(content)
    if isinstance(normalized, dict):
        return lesson_plan_to_markdown(normalized)
    logger.warning("Lesson plan response was not a JSON object; returning it as text")
    return normalized if isinstance(normalized, str) else content


def format_story_response_as_markdown(content: str) -> str:
    normalized = normalize(content)
    if isinstance(normalized, dict):
        return story_plan_to_markdown(normalized)
    logger.warning("Story plan response was not a JSON object; returning it as text")
    return normalized if isinstance(normalized, str) else content


def to_canonical_lesson_plan(data: Any) -> CanonicalLessonPlanDoc:
    """Coerce normalized output (object or raw text) into the typed lesson plan; non-objects give an empty plan."""
    normalized = normalize(data) if isinstance(data, (str, dict, list)) else data
    if isinstance(normalized, CanonicalLessonPlanDoc):
        return normalized
    if not isinstance(normalized, dict):
        return CanonicalLessonPlanDoc()
    try:
        return CanonicalLessonPlanDoc.model_validate(normalized)
    except ValidationError as e:
        logger.warning("Lesson plan did not match the canonical shape: %s", e)
        return CanonicalLessonPlanDoc()


def to_story_lesson_plan(data: Any) -> StoryLessonPlan:
    normalized = normalize(data) if isinstance(data, (str, dict, list)) else data
    if isinstance(normalized, StoryLessonPlan):
        return normalized
    if not isinstance(normalized, dict):
        return StoryLessonPlan()
    try:
        return StoryLessonPlan.model_validate(normalized)
    except ValidationError as e:
        logger.warning("Story plan did not match the canonical shape: %s", e)
        return StoryLessonPlan()
