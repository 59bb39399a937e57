import logging
import uuid
from enum import IntEnum
from typing import List, Sequence

from mothermath.core.curriculum_loader import is_math_topic, load_curriculum
from mothermath.core.errors import (
    EmptyTopicError,
    InvalidSectionsError,
    NonMathTopicError,
    UnexpectedResponseError,
)
from mothermath.models.lesson_plan import (
    GeneratedLessonPlan,
    GeneratedStoryPlan,
    LessonPlan,
    LessonSection,
    coerce_optional_text,
)
from mothermath.services.prompt_builder import (
    PromptRequest,
    build_lesson_plan_prompt,
    build_outline_prompt,
    build_story_plan_prompt,
)
from mothermath.services.schema_mapper import (
    lesson_plan_to_markdown,
    story_plan_to_markdown,
    to_canonical_lesson_plan,
    to_story_lesson_plan,
)
from mothermath.utils.ai_client import FailedReply, GatewayClient, ParsedReply, TextReply

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def new_section_id() -> str:
    return f"section-{uuid.uuid4().hex[:12]}"


def validate_scaffold(sections: Sequence[LessonSection]) -> None:
    """A scaffold needs at least one section, every title non-empty, ids unique."""
    if not sections:
        raise InvalidSectionsError("Add at least one section before generating the lesson plan.")
    seen = set()
    for section in sections:
        if not section.title or not section.title.strip():
            raise InvalidSectionsError("Every section needs a title.")
        if section.id in seen:
            raise InvalidSectionsError(f"Duplicate section id: {section.id}")
        seen.add(section.id)


def default_sections(kind: str = "lesson") -> List[LessonSection]:
    """Fresh copy of the default scaffold from the curriculum file."""
    key = "story_sections" if kind == "story" else "lesson_sections"
    return [
        LessonSection(id=new_section_id(), title=s["title"], key_points=s.get("keyPoints", ""))
        for s in load_curriculum()[key]
    ]


# -------------------------
# Gateway orchestration
# -------------------------
class LessonPlanService:
    """Outline, detailed lesson plan and story plan generation over one gateway client."""

    def __init__(self, client: GatewayClient):
        self.client = client

    async def _request_object(self, request: PromptRequest) -> ParsedReply:
        reply = await self.client.send_safely(request, response_type="json")
        if isinstance(reply, FailedReply):
            logger.error(f"Gateway call failed: {reply.reason}")
            raise reply.error
        if isinstance(reply, TextReply):
            raise UnexpectedResponseError("The AI returned text where a JSON object was expected.")
        return reply

    async def generate_outline(self, topic: str, level: str) -> List[LessonSection]:
        """Ask the gateway for a 5-7 section scaffold for the topic."""
        if not topic or not topic.strip() or not level or not level.strip():
            raise EmptyTopicError()
        if not is_math_topic(topic):
            raise NonMathTopicError(topic)

        reply = await self._request_object(build_outline_prompt(topic, level))
        sections = reply.data.get("sections") if isinstance(reply.data, dict) else None
        if not isinstance(sections, list):
            logger.error(f"AI response was not in the expected format: {reply.raw[:500]}")
            raise UnexpectedResponseError("The AI returned an unexpected data structure. Please try again.")

        outline = []
        for item in sections:
            if not isinstance(item, dict):
                continue
            outline.append(LessonSection(
                id=new_section_id(),
                title=coerce_optional_text(item.get("title")) or "Untitled Section",
                key_points=coerce_optional_text(item.get("keyPoints")) or "",
                time="",
                teacher_activities="",
                learner_activities="",
            ))
        logger.info(f"Generated outline with {len(outline)} sections for '{topic}' ({level})")
        return outline

    async def generate_lesson_plan(
        self, topic: str, level: str, sections: Sequence[LessonSection]
    ) -> GeneratedLessonPlan:
        if not topic or not topic.strip() or not level or not level.strip():
            raise EmptyTopicError("Please provide both a topic and a class level.")
        validate_scaffold(sections)

        reply = await self._request_object(build_lesson_plan_prompt(topic, level, sections))
        plan = to_canonical_lesson_plan(reply.data)
        markdown = lesson_plan_to_markdown(reply.data if isinstance(reply.data, dict) else plan)
        logger.info(f"Lesson plan generated for '{topic}' ({level}) with {len(plan.sections)} sections")
        return GeneratedLessonPlan(plan=plan, markdown=markdown, raw=reply.raw)

    async def generate_story_plan(
        self, topic: str, level: str, sections: Sequence[LessonSection]
    ) -> GeneratedStoryPlan:
        if not topic or not topic.strip() or not level or not level.strip():
            raise EmptyTopicError("Please provide both a topic and a class level.")
        validate_scaffold(sections)

        reply = await self._request_object(build_story_plan_prompt(topic, level, sections))
        plan = to_story_lesson_plan(reply.data)
        markdown = story_plan_to_markdown(reply.data if isinstance(reply.data, dict) else plan)
        logger.info(f"Story lesson plan generated for '{topic}' ({level})")
        return GeneratedStoryPlan(plan=plan, markdown=markdown, raw=reply.raw)


# -------------------------
# Wizard
# -------------------------
class WizardPhase(IntEnum):
    TOPIC = 1
    STRUCTURE = 2
    REVIEW = 3
    CONTENT = 4


class LessonPlanWizard:
    """
    In-process driver for the four-phase lesson plan workflow.

    Phase 1 collects topic and level, phase 2 holds the AI outline, phase 3 is
    the user's structure review (sections edited in place), phase 4 holds the
    generated content. A failed outline call returns the wizard to phase 1.
    """

    def __init__(self, service: LessonPlanService, kind: str = "lesson"):
        self.service = service
        self.kind = kind
        self.phase = WizardPhase.TOPIC
        self.plan = LessonPlan(topic="", level="", sections=default_sections(kind))
        self.result = None

    # Phase 1 -> 2
    def set_topic(self, topic: str, level: str) -> None:
        self.plan.topic = topic.strip()
        self.plan.level = level.strip()

    async def generate_structure(self) -> List[LessonSection]:
        self.phase = WizardPhase.STRUCTURE
        try:
            sections = await self.service.generate_outline(self.plan.topic, self.plan.level)
        except Exception:
            self.phase = WizardPhase.TOPIC
            raise
        self.plan.sections = sections
        return sections

    def next_phase(self) -> WizardPhase:
        if self.phase == WizardPhase.STRUCTURE and not self.plan.sections:
            raise InvalidSectionsError("Add at least one section before continuing.")
        if self.phase < WizardPhase.REVIEW:
            self.phase = WizardPhase(self.phase + 1)
        return self.phase

    def previous_phase(self) -> WizardPhase:
        if self.phase > WizardPhase.TOPIC:
            self.phase = WizardPhase(self.phase - 1)
        return self.phase

    # Section editing
    def _index(self, section_id: str) -> int:
        for i, section in enumerate(self.plan.sections):
            if section.id == section_id:
                return i
        raise InvalidSectionsError(f"Unknown section id: {section_id}")

    def add_section(self, title: str = "NEW SECTION", key_points: str = "Add key points here...") -> LessonSection:
        section = LessonSection(
            id=new_section_id(), title=title, key_points=key_points,
            time="", teacher_activities="", learner_activities="",
        )
        self.plan.sections.append(section)
        return section

    def delete_section(self, section_id: str) -> None:
        del self.plan.sections[self._index(section_id)]

    def update_section(self, section_id: str, **fields) -> LessonSection:
        index = self._index(section_id)
        if "id" in fields:
            raise InvalidSectionsError("Section ids cannot be changed.")
        updated = self.plan.sections[index].model_copy(update=fields)
        self.plan.sections[index] = updated
        return updated

    def move_section(self, section_id: str, offset: int) -> None:
        index = self._index(section_id)
        target = max(0, min(len(self.plan.sections) - 1, index + offset))
        section = self.plan.sections.pop(index)
        self.plan.sections.insert(target, section)

    # Phase 4
    async def generate_content(self):
        if self.kind == "story":
            result = await self.service.generate_story_plan(self.plan.topic, self.plan.level, self.plan.sections)
        else:
            result = await self.service.generate_lesson_plan(self.plan.topic, self.plan.level, self.plan.sections)
        self.result = result
        self.plan.generated_content = result.markdown
        self.phase = WizardPhase.CONTENT
        return result

    def reset(self) -> None:
        self.phase = WizardPhase.TOPIC
        self.plan = LessonPlan(topic="", level="", sections=default_sections(self.kind))
        self.result = None
