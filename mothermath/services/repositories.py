"""
Database access for interviews and saved lesson plans.

Repositories take a SQLAlchemy Session (from `get_db`) and return pydantic
models, so routes never touch ORM rows. Every write commits immediately and
any database failure is rolled back and re-raised as PersistenceError.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mothermath.core.errors import NotFoundError, PersistenceError
from mothermath.models.interview import Interview, InterviewCreate, TranscriptEntry
from mothermath.models.lesson_plan import SaveLessonPlanRequest, SavedLessonPlan
from mothermath.models.records import InterviewRecord, LessonPlanRecord

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def _to_interview(row: InterviewRecord) -> Interview:
    return Interview(
        id=row.id,
        user_id=row.user_id,
        role=row.role,
        level=row.level,
        topic=row.topic,
        focus=row.focus,
        time=row.time,
        questions=list(row.questions or []),
        transcript=row.transcript,
        feedback=row.feedback,
        created_at=row.created_at,
    )


def _to_saved_plan(row: LessonPlanRecord) -> SavedLessonPlan:
    return SavedLessonPlan(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        level=row.level,
        kind=row.kind,
        content=row.content or {},
        markdown=row.markdown,
        created_at=row.created_at,
    )


class _Repository:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while trying to {action}: {e}")
            raise PersistenceError(f"Failed to {action}.") from e


# -------------------------
# Interviews
# -------------------------
class InterviewRepository(_Repository):
    def _row(self, interview_id: str, user_id: Optional[str] = None) -> InterviewRecord:
        try:
            row = self.db.get(InterviewRecord, interview_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching interview {interview_id}: {e}")
            raise PersistenceError("Failed to fetch interview.") from e
        # Another user's interview is reported as missing
        if row is None or (user_id is not None and row.user_id != user_id):
            raise NotFoundError("Interview", interview_id)
        return row

    def create(self, user_id: str, data: InterviewCreate) -> Interview:
        row = InterviewRecord(
            user_id=user_id,
            role=data.role,
            level=data.level,
            topic=data.topic,
            focus=data.focus,
            time=data.time,
            questions=list(data.questions),
        )
        self.db.add(row)
        self._commit("create interview")
        self.db.refresh(row)
        logger.info(f"Interview {row.id} created for user {user_id}")
        return _to_interview(row)

    def list_for_user(self, user_id: str) -> List[Interview]:
        try:
            rows = self.db.scalars(
                select(InterviewRecord)
                .where(InterviewRecord.user_id == user_id)
                .order_by(InterviewRecord.created_at.desc())
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching interviews: {e}")
            raise PersistenceError("Failed to fetch interviews.") from e
        return [_to_interview(r) for r in rows]

    def get(self, interview_id: str, user_id: Optional[str] = None) -> Interview:
        return _to_interview(self._row(interview_id, user_id))

    def delete(self, interview_id: str, user_id: str) -> None:
        row = self._row(interview_id, user_id)
        self.db.delete(row)
        self._commit("delete interview")

    def set_transcript(self, interview_id: str, user_id: str, transcript: List[TranscriptEntry]) -> Interview:
        row = self._row(interview_id, user_id)
        row.transcript = [entry.model_dump() for entry in transcript]
        self._commit("update transcript")
        self.db.refresh(row)
        return _to_interview(row)

    def set_feedback(self, interview_id: str, user_id: str, feedback: str) -> Interview:
        row = self._row(interview_id, user_id)
        row.feedback = feedback
        self._commit("update interview feedback")
        self.db.refresh(row)
        return _to_interview(row)


# -------------------------
# Saved lesson plans
# -------------------------
class LessonPlanRepository(_Repository):
    def _row(self, plan_id: str, user_id: str) -> LessonPlanRecord:
        try:
            row = self.db.get(LessonPlanRecord, plan_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching lesson plan {plan_id}: {e}")
            raise PersistenceError("Failed to fetch lesson plan.") from e
        if row is None or row.user_id != user_id:
            raise NotFoundError("Lesson plan", plan_id)
        return row

    def save(self, user_id: str, data: SaveLessonPlanRequest) -> SavedLessonPlan:
        row = LessonPlanRecord(
            user_id=user_id,
            title=data.title,
            level=data.level,
            kind=data.kind,
            content=data.content,
            markdown=data.markdown,
        )
        self.db.add(row)
        self._commit("save lesson plan")
        self.db.refresh(row)
        logger.info(f"Lesson plan {row.id} saved for user {user_id}")
        return _to_saved_plan(row)

    def list_for_user(self, user_id: str) -> List[SavedLessonPlan]:
        try:
            rows = self.db.scalars(
                select(LessonPlanRecord)
                .where(LessonPlanRecord.user_id == user_id)
                .order_by(LessonPlanRecord.created_at.desc())
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching lesson plans: {e}")
            raise PersistenceError("Failed to fetch lesson plans.") from e
        return [_to_saved_plan(r) for r in rows]

    def get(self, plan_id: str, user_id: str) -> SavedLessonPlan:
        return _to_saved_plan(self._row(plan_id, user_id))

    def delete(self, plan_id: str, user_id: str) -> None:
        row = self._row(plan_id, user_id)
        self.db.delete(row)
        self._commit("delete lesson plan")
