import uuid

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.sql import func

from mothermath.core.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class InterviewRecord(Base):
    __tablename__ = "interviews"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String, nullable=False, index=True)

    # Setup
    role = Column(String, nullable=False)
    level = Column(String, nullable=False)
    topic = Column(String, nullable=False)
    focus = Column(String, nullable=False)
    time = Column(Integer, nullable=False)
    questions = Column(JSON, nullable=False)

    # Session output
    transcript = Column(JSON)
    feedback = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class LessonPlanRecord(Base):
    __tablename__ = "lesson_plans"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String, nullable=False, index=True)

    title = Column(String, nullable=False)
    level = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="lesson")  # "lesson" or "story"
    content = Column(JSON, nullable=False)  # canonical object
    markdown = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
