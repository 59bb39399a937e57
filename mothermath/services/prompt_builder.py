"""
Prompt builder for every gateway task.

Each builder is a pure function of its inputs and returns a PromptRequest: a system
instruction plus the user content (a string, or for image analysis a list mixing text
and an image reference). Structured tasks describe the exact JSON they expect and ask
for a JSON object response format.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from mothermath.core.errors import EmptyTopicError, EmptyTranscriptError, NoQuestionsError

JSON_OBJECT_FORMAT = {"type": "json_object"}

BRAND = "Mothers for Mathematics"


@dataclass
class PromptRequest:
    system: str
    user: Union[str, List[Dict[str, Any]], None]
    history: List[Dict[str, str]] = field(default_factory=list)
    response_format: Optional[Dict[str, str]] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def to_messages(self) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": self.system}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in self.history)
        if self.user is not None:
            messages.append({"role": "user", "content": self.user})
        return messages


def _field(item: Any, name: str) -> Any:
    """Read a camelCase key from a dict, or the matching snake_case attribute from a model."""
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower(), None)


def _require_topic(topic: str) -> str:
    if not topic or not topic.strip():
        raise EmptyTopicError()
    return topic.strip()


def _json_system_prompt() -> str:
    return (
        f'You are an AI assistant for "{BRAND}". Your task is to generate a structured lesson plan '
        "based on a given topic. The response MUST be a valid JSON object."
    )


# -------------------------
# Lesson plan prompts
# -------------------------
def build_outline_prompt(topic: str, level: str) -> PromptRequest:
    topic = _require_topic(topic)
    user = (
        f'Based on the topic "{topic}" for {level} students in Cameroon, generate a structured lesson plan '
        "outline. You must provide between 5 and 7 sections. Respond with ONLY a valid JSON object in the "
        'following format: { "sections": [{"title": "SECTION_TITLE", "keyPoints": "KEY_POINTS_HERE"}] }'
    )
    return PromptRequest(system=_json_system_prompt(), user=user, response_format=JSON_OBJECT_FORMAT)


def build_lesson_plan_prompt(topic: str, level: str, sections: Sequence[Any]) -> PromptRequest:
    topic = _require_topic(topic)
    section_titles = ", ".join(f'"{_field(s, "title")}"' for s in sections)
    section_details = "\n".join(
        f'    - "{_field(s, "title")}": {_field(s, "keyPoints") or ""}' for s in sections
    )

    user = f"""
You are an expert instructional designer specializing in creating exceptionally detailed, comprehensive, and explanatory mathematics lesson plans. Your task is to generate an exhaustive and deeply detailed lesson plan for a "{level}" class on the topic: "{topic}".

Your response MUST be a single JSON object with a root key "lessonPlan".

The "lessonPlan" object must contain:
1.  "title": A concise and descriptive title for the lesson.
2.  "gradeLevel": The target grade level ("{level}").
3.  "subject": "Mathematics".
4.  "topic": The specific topic ("{topic}").
5.  "lessonObjectives": An array of at least 3 clear, measurable, and detailed learning objectives.
6.  "materials": A comprehensive array of all necessary materials, including digital resources if applicable.
7.  "sections": An array of objects for the main lesson parts, in exactly this order and with exactly these titles: {section_titles}. The teacher's key points for each part are:
{section_details}
    Each section object MUST have the following keys:
    - "title": The section title (e.g., "INTRODUCTION").
    - "teacherActivities": An array of strings describing the teacher's actions. This must be extremely detailed, providing not just instructions but also the *actual content* the teacher should use. Provide concrete examples, sample questions, and brief scripts.
    - "learnerActivities": An equally detailed list of the learners' corresponding actions, responses, and expected thought processes.
8.  "evaluation": An object with a "description" key containing a detailed plan for assessing student understanding, covering formative (questioning, observation) and summative (exit ticket, quiz) strategies.
9.  "assignment": An object with a "description" key for the homework task, with clear instructions and an example if the task is complex.

**Crucial Formatting Example:**
For a section, the structure MUST be:
{{
  "title": "INTRODUCTION",
  "teacherActivities": [
    "Teacher will start by asking probing questions to activate prior knowledge, such as 'What do we mean by a collection of items? Can you give me an example?'.",
    "Explain the mathematical term 'set' as a 'well-defined collection of distinct objects'."
  ],
  "learnerActivities": [
    "Students will brainstorm and share examples of collections from their daily lives.",
    "Learners will copy the formal definition of a set into their notebooks and ask clarifying questions."
  ]
}}

Ensure the entire output is a single, valid JSON object. Do not include any explanatory text outside of the JSON structure itself.
"""
    return PromptRequest(system=_json_system_prompt(), user=user.strip(), response_format=JSON_OBJECT_FORMAT)


def build_story_plan_prompt(topic: str, level: str, sections: Sequence[Any]) -> PromptRequest:
    topic = _require_topic(topic)
    section_details = "\n".join(f'"{_field(s, "title")}": {_field(s, "keyPoints") or ""}' for s in sections)
    section_list = "\n".join(f'    - "{_field(s, "title")}": {_field(s, "keyPoints") or ""}' for s in sections)

    user = f"""
You are an expert in creating engaging, culturally relevant mathematical stories for young learners in Cameroon. Your task is to generate a comprehensive story-based lesson plan for a "{level}" class on the topic: "{topic}".

The teacher has defined the following lesson structure:
{section_details}

Your response MUST be a single JSON object with a root key "storyLessonPlan".

The "storyLessonPlan" object must contain:

1. "title": A captivating title for the story lesson (e.g., "Ambe's Market Adventure: Learning {topic}")
2. "gradeLevel": The target grade level ("{level}")
3. "subject": "Mathematics"
4. "topic": The specific topic ("{topic}")
5. "storyTheme": A brief description of the story's main theme
6. "storyOverview": A 2-3 sentence summary of the complete story
7. "characters": An array of character objects with Cameroonian names (main characters: Ambe, Manka, Chia, Ngum; supporting adults: Mama, Papa, Auntie Ngum, Uncle Bih). Each character has "name" and "description" fields
8. "setting": The local Cameroonian setting (e.g., "Mile 3 Bamenda", "Ntarinkon Market", "village school", "family compound")
9. "lessonObjectives": An array of 3-4 clear, measurable learning objectives specific to {topic}
10. "materials": Array of materials needed (story props, local objects, manipulatives, etc.)
11. "storySections": An array following the teacher's structure with these exact sections, in this order:
{section_list}
    Each section must have:
    - "title": Exact section name from the teacher's structure
    - "storyContent": The story narrative (3-4 paragraphs, age-appropriate language with dialogue)
    - "mathConcept": The specific mathematical concept being taught
    - "teacherGuidance": Array of detailed instructions for the teacher (what to say, questions to ask)
    - "studentActivities": Array of specific activities students do (counting, grouping, acting out)
    - "keyPoints": How this section addresses the teacher's specified key points
12. "practiceActivities": Array of 4-5 follow-up activities that extend the story
13. "assessment": Object with a detailed "description" of formative and summative assessment strategies
14. "extensionActivities": Array of activities for advanced learners or homework
15. "culturalConnections": How the story connects to Cameroonian culture and daily life

CRITICAL STORY REQUIREMENTS:
- Use simple, clear language appropriate for {level} students in Cameroon
- Include rich sensory details (bright colors, market sounds, food smells)
- Feature local foods (plantains, groundnuts, tomatoes, corn), places (markets, compounds), and customs
- Make {topic} problems arise naturally from daily activities
- Use CFA francs, local measurements, and familiar objects

Ensure the story is educationally sound, culturally authentic, and aligned with the teacher's specified structure and key points.
"""
    return PromptRequest(system=_json_system_prompt(), user=user.strip(), response_format=JSON_OBJECT_FORMAT)


# -------------------------
# Interview prompts
# -------------------------
def transcript_as_dicts(transcript: Sequence[Any]) -> List[Dict[str, str]]:
    return [{"role": _field(t, "role"), "content": _field(t, "content")} for t in transcript]


def build_feedback_prompt(transcript: Sequence[Any]) -> PromptRequest:
    if not transcript:
        raise EmptyTranscriptError("Transcript is empty, cannot generate feedback.")

    system = """
You are an expert teacher trainer and instructional coach.
A user has just completed a mock interview to practice their teaching skills.
Your task is to analyze the interview transcript and provide constructive, specific, and encouraging feedback.

The transcript is provided as a JSON array of objects, where 'role' is either 'assistant' (the interviewer) or 'user' (the teacher).

Please structure your feedback into the following sections:
1.  **Overall Summary:** A brief overview of the user's performance.
2.  **Strengths:** Identify 2-3 specific things the user did well. Quote parts of their answers to support your points.
3.  **Areas for Improvement:** Identify 2-3 areas where the user could improve. Provide actionable suggestions and re-frame their responses where appropriate.
4.  **Concluding Remarks:** End with an encouraging and motivational statement.

Your feedback should be formatted in clear Markdown.
"""
    user = "Transcript:\n" + json.dumps(transcript_as_dicts(transcript), indent=2)
    return PromptRequest(system=system.strip(), user=user)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def interview_question_count(minutes: int) -> int:
    return max(3, round_half_up(minutes / 1.5))


def build_interview_questions_prompt(role: str, level: str, topic: str, focus: str, minutes: int) -> PromptRequest:
    topic = _require_topic(topic)
    count = interview_question_count(minutes)
    user = (
        f"Generate {count} interview questions for a job role of '{role}' at the '{level}' level. "
        f"The topic is '{topic}', with a focus on '{focus}'. The entire interview should last approximately "
        f"{minutes} minutes. Please provide only the questions, each on a new line, without numbering."
    )
    system = f'You are an AI assistant for "{BRAND}" helping teachers rehearse job interviews.'
    return PromptRequest(system=system, user=user)


def build_interview_session_prompt(user_name: str, questions: Sequence[str]) -> str:
    """System prompt handed to the voice agent for a live interview."""
    if not questions:
        raise NoQuestionsError()
    numbered = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(questions))
    return (
        "You are a friendly and professional interviewer conducting a mock interview for a teaching position. "
        f"Your name is Eva. The user's name is {user_name}. Your task is to ask the user the following questions "
        "one by one. Do not ask them all at once. After you ask a question, wait for the user's full response "
        "before moving to the next one. After the last question, thank the user for their time and end the "
        f"conversation by saying 'Interview complete.' Here are the questions:\n\n{numbered}"
    )


# -------------------------
# Chatbot / analysis prompts
# -------------------------
def build_chat_system_prompt(grade: str) -> str:
    return (
        "You are MAMA (Mathematics Assistant for Cameroon), an AI teaching assistant specialized in Cameroon's "
        f"primary mathematics curriculum. You are currently assisting a teacher for Primary {grade}. All your "
        "responses must be tailored specifically to this grade level.\n\n"
        "You help teachers with:\n"
        f"- Mathematics curriculum guidance for Cameroon National Primary Mathematics Standards for Primary {grade}.\n"
        f"- Lesson planning and teaching strategies for Primary {grade}.\n"
        f"- Student assessment and progress tracking for Primary {grade}.\n"
        f"- Explaining mathematical concepts appropriate for Primary {grade}.\n"
        f"- Cultural integration of local Cameroonian contexts in math education for Primary {grade}.\n\n"
        "Key Guidelines:\n"
        f"- Your primary focus is Primary {grade}. All examples, explanations, and advice must be suitable for a "
        "child in this class.\n"
        "- Always provide culturally relevant examples using Cameroonian contexts (CFA francs, local markets, "
        "familiar foods, etc.).\n"
        f"- Use simple, clear language appropriate for Primary {grade}.\n"
        f"- Provide specific, actionable advice for teachers relevant to Primary {grade}.\n\n"
        "Be helpful, encouraging, and educational in all responses, ensuring they are directly applicable to "
        f"Primary {grade}."
    )


def build_chat_prompt(message: str, history: Sequence[Any], grade: str) -> PromptRequest:
    return PromptRequest(
        system=build_chat_system_prompt(grade),
        user=message,
        history=transcript_as_dicts(history),
    )


def build_student_work_prompt(message: str, image_data_url: str) -> PromptRequest:
    system = (
        f'You are an AI assistant for "{BRAND}", a project helping teachers and parents in Cameroon with '
        "mathematics education. You specialize in providing feedback on student work using Math Error Analysis "
        "principles. When analyzing student work, identify:\n"
        "- Specific error types (e.g., incorrect counting, mixed grouping, etc.)\n"
        "- Root causes of mathematical misunderstandings\n"
        "- Practical remediation strategies that parents or teachers can implement\n\n"
        "Always be encouraging, use simple language, and provide actionable advice. Use markdown formatting, "
        "including headings, to structure the analysis and make it easy to read. The user has uploaded an image "
        "of student work. Analyze it for mathematical errors, providing specific feedback on what the student did "
        "correctly and incorrectly. Suggest practical remediation activities."
    )
    user = [
        {"type": "text", "text": message},
        {"type": "image_url", "image_url": {"url": image_data_url, "detail": "high"}},
    ]
    return PromptRequest(system=system, user=user)
