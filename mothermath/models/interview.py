from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator

from mothermath.models.lesson_plan import CamelModel


class TranscriptEntry(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class Interview(CamelModel):
    id: str
    user_id: str
    role: str
    level: str
    topic: str
    focus: str
    time: int  # minutes
    questions: List[str]
    transcript: Optional[List[TranscriptEntry]] = None
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None


class InterviewCreate(CamelModel):
    role: str
    level: str
    topic: str
    focus: str
    time: int = Field(..., gt=0)
    questions: List[str]

    @field_validator("questions")
    @classmethod
    def strip_blank_questions(cls, v):
        return [q.strip() for q in v if q and q.strip()]


class QuestionsRequest(CamelModel):
    role: str
    level: str
    topic: str
    focus: str
    time: int = Field(..., gt=0)


class QuestionsResponse(CamelModel):
    questions: List[str]


class TranscriptUpdate(CamelModel):
    transcript: List[TranscriptEntry]


class AnalyzeRequest(CamelModel):
    # Validated by the route: missing or malformed transcripts are a 400 there
    transcript: Any = None


class FeedbackResponse(CamelModel):
    feedback: str


class VoiceSessionConfig(CamelModel):
    """What the browser voice SDK needs to start a session; never carries a secret."""

    assistant_id: str
    variable_values: dict
