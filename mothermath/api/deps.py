from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from mothermath.core.config import get_gateway_settings
from mothermath.core.database import get_db
from mothermath.services.chatbot import ChatbotService
from mothermath.services.interview_service import InterviewService
from mothermath.services.lesson_plan_service import LessonPlanService
from mothermath.services.repositories import InterviewRepository, LessonPlanRepository
from mothermath.services.student_work import StudentWorkService
from mothermath.utils.ai_client import GatewayClient
from mothermath.utils.inflight import InFlightGuard


@lru_cache()
def get_gateway_client() -> GatewayClient:
    return GatewayClient(get_gateway_settings())


@lru_cache()
def get_inflight_guard() -> InFlightGuard:
    return InFlightGuard()


def get_lesson_plan_service(client: GatewayClient = Depends(get_gateway_client)) -> LessonPlanService:
    return LessonPlanService(client)


def get_chatbot_service(client: GatewayClient = Depends(get_gateway_client)) -> ChatbotService:
    return ChatbotService(client)


def get_student_work_service(client: GatewayClient = Depends(get_gateway_client)) -> StudentWorkService:
    return StudentWorkService(client)


def get_interview_service(
    db: Session = Depends(get_db), client: GatewayClient = Depends(get_gateway_client)
) -> InterviewService:
    return InterviewService(InterviewRepository(db), client)


def get_lesson_plan_repository(db: Session = Depends(get_db)) -> LessonPlanRepository:
    return LessonPlanRepository(db)
