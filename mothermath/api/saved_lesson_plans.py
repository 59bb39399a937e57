import logging
from typing import List

from fastapi import APIRouter, Depends, status

from mothermath.api.deps import get_lesson_plan_repository
from mothermath.core.security import get_current_user
from mothermath.models.lesson_plan import SaveLessonPlanRequest, SavedLessonPlan
from mothermath.services.repositories import LessonPlanRepository

router = APIRouter()

logger = logging.getLogger("saved_lesson_plans_api")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.addHandler(handler)


@router.get("", response_model=List[SavedLessonPlan], summary="List the user's saved lesson plans, newest first")
def list_lesson_plans(
    user_id: str = Depends(get_current_user),
    repo: LessonPlanRepository = Depends(get_lesson_plan_repository),
):
    return repo.list_for_user(user_id)


@router.post("", response_model=SavedLessonPlan, status_code=status.HTTP_201_CREATED)
def save_lesson_plan(
    req: SaveLessonPlanRequest,
    user_id: str = Depends(get_current_user),
    repo: LessonPlanRepository = Depends(get_lesson_plan_repository),
):
    saved = repo.save(user_id, req)
    logger.info(f"'{req.title}' saved by {user_id}")
    return saved


@router.get("/{plan_id}", response_model=SavedLessonPlan)
def get_lesson_plan(
    plan_id: str,
    user_id: str = Depends(get_current_user),
    repo: LessonPlanRepository = Depends(get_lesson_plan_repository),
):
    return repo.get(plan_id, user_id)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson_plan(
    plan_id: str,
    user_id: str = Depends(get_current_user),
    repo: LessonPlanRepository = Depends(get_lesson_plan_repository),
):
    repo.delete(plan_id, user_id)
    logger.info(f"Lesson plan {plan_id} deleted by {user_id}")
