import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

from mothermath.api.deps import get_interview_service
from mothermath.core.config import VoiceSettings, get_voice_settings
from mothermath.core.security import get_current_user
from mothermath.models.interview import (
    FeedbackResponse,
    Interview,
    InterviewCreate,
    QuestionsRequest,
    QuestionsResponse,
    TranscriptUpdate,
    VoiceSessionConfig,
)
from mothermath.services.interview_service import InterviewService

router = APIRouter()

# -------------------------
# Logging Configuration
# -------------------------
logger = logging.getLogger("interviews_api")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.addHandler(handler)


@router.post("/questions", response_model=QuestionsResponse, summary="Generate mock interview questions")
async def generate_questions(
    req: QuestionsRequest,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    questions = await service.generate_questions(req.role, req.level, req.topic, req.focus, req.time)
    return QuestionsResponse(questions=questions)


@router.post("", response_model=Interview, status_code=status.HTTP_201_CREATED)
def create_interview(
    req: InterviewCreate,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    interview = service.create(user_id, req)
    logger.info(f"Interview {interview.id} on '{req.topic}' created by {user_id}")
    return interview


@router.get("", response_model=List[Interview])
def list_interviews(
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    return service.list_for_user(user_id)


@router.get("/{interview_id}", response_model=Interview)
def get_interview(
    interview_id: str,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    return service.get(interview_id, user_id)


@router.delete("/{interview_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_interview(
    interview_id: str,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    service.delete(interview_id, user_id)


@router.put("/{interview_id}/transcript", response_model=Interview, summary="Store the session transcript")
def update_transcript(
    interview_id: str,
    req: TranscriptUpdate,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    """Append-only: the new transcript must start with the stored one."""
    return service.update_transcript(interview_id, user_id, req.transcript)


@router.post("/{interview_id}/feedback", response_model=FeedbackResponse, summary="Generate interview feedback")
async def generate_feedback(
    interview_id: str,
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
):
    feedback = await service.generate_feedback(interview_id, user_id)
    return FeedbackResponse(feedback=feedback)


@router.get("/{interview_id}/session", response_model=VoiceSessionConfig, summary="Voice session start values")
def session_config(
    interview_id: str,
    user_name: str = Query(..., alias="userName", min_length=1),
    user_id: str = Depends(get_current_user),
    service: InterviewService = Depends(get_interview_service),
    voice: VoiceSettings = Depends(get_voice_settings),
):
    return service.session_config(interview_id, user_id, user_name, voice)
