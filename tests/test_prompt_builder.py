import pytest

from mothermath.core.errors import EmptyTopicError, EmptyTranscriptError, NoQuestionsError
from mothermath.models.lesson_plan import LessonSection
from mothermath.services.prompt_builder import (
    JSON_OBJECT_FORMAT,
    build_chat_prompt,
    build_feedback_prompt,
    build_interview_questions_prompt,
    build_interview_session_prompt,
    build_lesson_plan_prompt,
    build_outline_prompt,
    build_story_plan_prompt,
    build_student_work_prompt,
    interview_question_count,
)

SECTIONS = [
    LessonSection(id="a", title="INTRODUCTION", key_points="Hook the class"),
    LessonSection(id="b", title="PRESENTATION", key_points="Worked examples"),
]


def test_outline_prompt_requests_json_object():
    request = build_outline_prompt("Fractions", "Primary 4")
    assert request.response_format == JSON_OBJECT_FORMAT
    assert '"Fractions"' in request.user
    assert "between 5 and 7 sections" in request.user


@pytest.mark.parametrize("topic", ["", "   "])
def test_empty_topic_is_rejected(topic):
    with pytest.raises(EmptyTopicError):
        build_outline_prompt(topic, "Primary 1")
    with pytest.raises(EmptyTopicError):
        build_lesson_plan_prompt(topic, "Primary 1", SECTIONS)


def test_lesson_plan_prompt_lists_sections_in_order():
    request = build_lesson_plan_prompt("Addition", "Primary 2", SECTIONS)
    assert 'root key "lessonPlan"' in request.user
    assert request.user.index('"INTRODUCTION"') < request.user.index('"PRESENTATION"')
    assert "Hook the class" in request.user


def test_lesson_plan_prompt_accepts_plain_dict_sections():
    request = build_lesson_plan_prompt("Addition", "Primary 2", [{"title": "WARM UP", "keyPoints": "Songs"}])
    assert '"WARM UP": Songs' in request.user


def test_story_prompt_uses_story_envelope():
    request = build_story_plan_prompt("Counting", "Primary 1", SECTIONS)
    assert '"storyLessonPlan"' in request.user
    assert "Cameroon" in request.user
    assert request.response_format == JSON_OBJECT_FORMAT


def test_feedback_prompt_requires_transcript():
    with pytest.raises(EmptyTranscriptError):
        build_feedback_prompt([])


def test_feedback_prompt_embeds_transcript():
    request = build_feedback_prompt([{"role": "user", "content": "5+5=10"}])
    assert "5+5=10" in request.user
    assert request.response_format is None
    messages = request.to_messages()
    assert [m["role"] for m in messages] == ["system", "user"]


@pytest.mark.parametrize("minutes,expected", [(1, 3), (3, 3), (10, 7), (15, 10), (20, 13), (30, 20)])
def test_interview_question_count(minutes, expected):
    assert interview_question_count(minutes) == expected


def test_interview_questions_prompt_mentions_count():
    request = build_interview_questions_prompt("Primary School Teacher", "Primary 3", "Fractions", "Technical", 15)
    assert "Generate 10 interview questions" in request.user


def test_session_prompt_numbers_questions():
    prompt = build_interview_session_prompt("Ngum", ["Why teach?", "How do you explain fractions?"])
    assert "The user's name is Ngum" in prompt
    assert prompt.endswith("1. Why teach?\n2. How do you explain fractions?")


def test_session_prompt_requires_questions():
    with pytest.raises(NoQuestionsError):
        build_interview_session_prompt("Ngum", [])


def test_chat_prompt_places_history_between_system_and_user():
    history = [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}]
    messages = build_chat_prompt("Help with fractions", history, "3").to_messages()
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert "Primary 3" in messages[0]["content"]
    assert messages[-1]["content"] == "Help with fractions"


def test_student_work_prompt_is_multimodal():
    request = build_student_work_prompt("Check this", "data:image/png;base64,AAAA")
    assert request.user[0] == {"type": "text", "text": "Check this"}
    assert request.user[1]["image_url"] == {"url": "data:image/png;base64,AAAA", "detail": "high"}
