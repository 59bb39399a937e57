# models/lesson_plan.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys used by the gateway payloads and the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------
# Coercion helpers (LLM output is untrusted)
# -------------------------
def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return ", ".join(f"{k}: {v}" for k, v in value.items())
    return str(value)


def coerce_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_as_text(v) for v in value if v is not None]
    return [_as_text(value)]


def coerce_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return "\n".join(_as_text(v) for v in value)
    return _as_text(value)


# -------------------------
# Wizard scaffold
# -------------------------
class LessonSection(CamelModel):
    id: str
    title: str
    key_points: str = ""
    time: Optional[str] = None
    teacher_activities: Optional[str] = None
    learner_activities: Optional[str] = None


def ensure_unique_ids(sections: List[LessonSection]) -> List[LessonSection]:
    seen = set()
    for section in sections:
        if section.id in seen:
            raise ValueError(f"Duplicate section id: {section.id}")
        seen.add(section.id)
    return sections


class LessonPlan(CamelModel):
    topic: str
    level: str
    sections: List[LessonSection] = Field(default_factory=list)
    generated_content: Optional[str] = None

    @field_validator("sections")
    @classmethod
    def unique_section_ids(cls, v):
        return ensure_unique_ids(v)


# -------------------------
# Canonical lesson plan document
# -------------------------
class Description(CamelModel):
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def from_plain_text(cls, data):
        if isinstance(data, (dict, Description)):
            return data
        return {"description": coerce_optional_text(data)}

    @field_validator("description", mode="before")
    @classmethod
    def text(cls, v):
        return coerce_optional_text(v)


class ActivitySection(CamelModel):
    title: Optional[str] = None
    teacher_activities: List[str] = Field(default_factory=list)
    learner_activities: List[str] = Field(default_factory=list)

    @field_validator("teacher_activities", "learner_activities", mode="before")
    @classmethod
    def lists(cls, v):
        return coerce_text_list(v)

    @field_validator("title", mode="before")
    @classmethod
    def title_text(cls, v):
        return coerce_optional_text(v)


class CanonicalLessonPlanDoc(CamelModel):
    title: Optional[str] = None
    grade_level: Optional[str] = None
    subject: Optional[str] = None
    topic: Optional[str] = None
    lesson_objectives: List[str] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    sections: List[ActivitySection] = Field(default_factory=list)
    evaluation: Optional[Description] = None
    assignment: Optional[Description] = None

    @field_validator("lesson_objectives", "materials", mode="before")
    @classmethod
    def lists(cls, v):
        return coerce_text_list(v)

    @field_validator("sections", mode="before")
    @classmethod
    def section_objects(cls, v):
        if not isinstance(v, list):
            return []
        return [s for s in v if isinstance(s, (dict, ActivitySection))]

    @field_validator("title", "grade_level", "subject", "topic", mode="before")
    @classmethod
    def scalars(cls, v):
        return coerce_optional_text(v)


# -------------------------
# Story lesson plan
# -------------------------
class Character(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def from_plain_text(cls, data):
        if isinstance(data, (dict, Character)):
            return data
        return {"name": _as_text(data)}

    def label(self) -> str:
        if self.description:
            return f"{self.name or 'Character'}: {self.description}"
        return self.name or ""


class StorySection(CamelModel):
    title: Optional[str] = None
    story_content: Optional[str] = None
    math_concept: Optional[str] = None
    teacher_guidance: List[str] = Field(default_factory=list)
    student_activities: List[str] = Field(default_factory=list)
    key_points: Optional[str] = None

    @field_validator("teacher_guidance", "student_activities", mode="before")
    @classmethod
    def lists(cls, v):
        return coerce_text_list(v)

    @field_validator("title", "story_content", "math_concept", "key_points", mode="before")
    @classmethod
    def scalars(cls, v):
        return coerce_optional_text(v)


class StoryLessonPlan(CanonicalLessonPlanDoc):
    story_theme: Optional[str] = None
    story_overview: Optional[str] = None
    characters: List[Character] = Field(default_factory=list)
    setting: Optional[str] = None
    story_sections: List[StorySection] = Field(default_factory=list)
    practice_activities: List[str] = Field(default_factory=list)
    extension_activities: List[str] = Field(default_factory=list)
    cultural_connections: Optional[str] = None
    assessment: Optional[Description] = None

    @field_validator("practice_activities", "extension_activities", mode="before")
    @classmethod
    def activity_lists(cls, v):
        return coerce_text_list(v)

    @field_validator("characters", mode="before")
    @classmethod
    def character_items(cls, v):
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, (dict, str, Character))]

    @field_validator("story_sections", mode="before")
    @classmethod
    def section_items(cls, v):
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, (dict, StorySection))]

    @field_validator("story_theme", "story_overview", "setting", "cultural_connections", mode="before")
    @classmethod
    def story_scalars(cls, v):
        return coerce_optional_text(v)


# -------------------------
# API payloads
# -------------------------
class OutlineRequest(CamelModel):
    topic: str
    level: str


class OutlineResponse(CamelModel):
    sections: List[LessonSection]


class GenerateRequest(CamelModel):
    topic: str
    level: str
    sections: List[LessonSection] = Field(..., min_length=1)

    @field_validator("sections")
    @classmethod
    def unique_section_ids(cls, v):
        return ensure_unique_ids(v)


class GeneratedLessonPlan(CamelModel):
    """Result of the detailed-content phase: typed document, its markdown, and the raw gateway text."""

    plan: CanonicalLessonPlanDoc
    markdown: str
    raw: str = ""


class GeneratedStoryPlan(CamelModel):
    plan: StoryLessonPlan
    markdown: str
    raw: str = ""


class MarkdownRequest(CamelModel):
    content: str


class MarkdownResponse(CamelModel):
    markdown: str


class ExportRequest(CamelModel):
    topic: str
    level: str = ""
    content: Any = None


class SaveLessonPlanRequest(CamelModel):
    title: str
    level: str
    kind: str = Field(default="lesson", pattern="^(lesson|story)$")
    content: dict
    markdown: Optional[str] = None


class SavedLessonPlan(CamelModel):
    id: str
    user_id: str
    title: str
    level: str
    kind: str
    content: dict
    markdown: Optional[str] = None
    created_at: Optional[datetime] = None
