import logging

from fastapi import APIRouter, Depends

from mothermath.api.deps import get_student_work_service
from mothermath.core.security import get_current_user
from mothermath.models.chat import StudentWorkRequest, StudentWorkResponse
from mothermath.services.student_work import StudentWorkService

router = APIRouter()

logger = logging.getLogger("student_work_api")
logger.setLevel(logging.INFO)


@router.post("/analyze", response_model=StudentWorkResponse, summary="Math error analysis of student work")
async def analyze_student_work(
    req: StudentWorkRequest,
    user_id: str = Depends(get_current_user),
    service: StudentWorkService = Depends(get_student_work_service),
):
    analysis = await service.analyze(req.message, req.image)
    logger.info(f"Student work analyzed for {user_id}")
    return StudentWorkResponse(analysis=analysis)
