import logging

from fastapi import APIRouter, Depends

from mothermath.api.deps import get_inflight_guard, get_lesson_plan_service
from mothermath.api.lesson_plan import download, slide_text
from mothermath.core.errors import ExportError
from mothermath.core.security import get_current_user
from mothermath.models.lesson_plan import (
    ExportRequest,
    GeneratedStoryPlan,
    GenerateRequest,
    MarkdownRequest,
    MarkdownResponse,
)
from mothermath.services.exporters.pdf_exporter import export_story_plan_pdf
from mothermath.services.exporters.pptx_exporter import export_story_plan_pptx
from mothermath.services.lesson_plan_service import LessonPlanService
from mothermath.services.schema_mapper import format_story_response_as_markdown, story_plan_to_markdown
from mothermath.utils.file_utils import PDF_MEDIA_TYPE, PPTX_MEDIA_TYPE, export_filename
from mothermath.utils.inflight import InFlightGuard

router = APIRouter()

logger = logging.getLogger("story_lesson_plan_api")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.addHandler(handler)


def generation_key(user_id: str) -> str:
    return f"story-lesson-plan:{user_id}"


@router.post("/generate", response_model=GeneratedStoryPlan, summary="Generate a story-based lesson plan")
async def create_story_plan(
    req: GenerateRequest,
    user_id: str = Depends(get_current_user),
    service: LessonPlanService = Depends(get_lesson_plan_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    result = await guard.run(
        generation_key(user_id),
        lambda: service.generate_story_plan(req.topic, req.level, req.sections),
    )
    logger.info(f"Story lesson plan generated for '{req.topic}' ({req.level}) by {user_id}")
    return result


@router.delete("/generate", summary="Cancel the running story generation")
async def cancel_story_plan(
    user_id: str = Depends(get_current_user),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    return {"cancelled": guard.cancel(generation_key(user_id))}


@router.post("/markdown", response_model=MarkdownResponse)
def render_markdown(req: MarkdownRequest, user_id: str = Depends(get_current_user)):
    return MarkdownResponse(markdown=format_story_response_as_markdown(req.content))


@router.post("/export/pdf", summary="Export a story lesson plan as PDF")
def export_pdf(req: ExportRequest, user_id: str = Depends(get_current_user)):
    try:
        data = export_story_plan_pdf(req.content, req.topic, req.level)
    except Exception as e:
        logger.exception("Story PDF export failed")
        raise ExportError(f"PDF export failed: {e}") from e
    return download(data, export_filename(req.topic, "pdf", story=True), PDF_MEDIA_TYPE)


@router.post("/export/pptx", summary="Export a story lesson plan as a slide deck")
def export_pptx(req: ExportRequest, user_id: str = Depends(get_current_user)):
    try:
        data = export_story_plan_pptx(slide_text(req.content, story_plan_to_markdown), req.topic)
    except Exception as e:
        logger.exception("Story slide export failed")
        raise ExportError(f"Slide export failed: {e}") from e
    return download(data, export_filename(req.topic, "pptx", story=True), PPTX_MEDIA_TYPE)
