from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from mothermath.models.lesson_plan import CamelModel


class ChatMessage(CamelModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)
    grade: Optional[str] = None


class ChatbotResponse(CamelModel):
    success: bool
    message: str
    error: Optional[str] = None


class StudentWorkRequest(CamelModel):
    message: str = "Please analyze this student's work."
    image: str = Field(..., min_length=1, description="Base64 image, raw or as a data URL")


class StudentWorkResponse(CamelModel):
    analysis: str
