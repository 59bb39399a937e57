import logging
from typing import Any

from fastapi import APIRouter, Depends, Response

from mothermath.api.deps import get_inflight_guard, get_lesson_plan_service
from mothermath.core.errors import ExportError
from mothermath.core.security import get_current_user
from mothermath.models.lesson_plan import (
    ExportRequest,
    GeneratedLessonPlan,
    GenerateRequest,
    MarkdownRequest,
    MarkdownResponse,
    OutlineRequest,
    OutlineResponse,
)
from mothermath.services.exporters.pdf_exporter import export_lesson_plan_pdf
from mothermath.services.exporters.pptx_exporter import export_lesson_plan_pptx
from mothermath.services.lesson_plan_service import LessonPlanService
from mothermath.services.schema_mapper import format_ai_response_as_markdown, lesson_plan_to_markdown
from mothermath.utils.file_utils import PDF_MEDIA_TYPE, PPTX_MEDIA_TYPE, export_filename
from mothermath.utils.inflight import InFlightGuard
from mothermath.utils.normalizer import normalize

router = APIRouter()

# -------------------------
# Logging Configuration
# -------------------------
logger = logging.getLogger("lesson_plan_api")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def generation_key(user_id: str) -> str:
    return f"lesson-plan:{user_id}"


def download(data: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def slide_text(content: Any, to_markdown) -> str:
    """Slides are cut from the Markdown preview; JSON content is rendered to Markdown first."""
    normalized = normalize(content) if isinstance(content, (str, dict, list)) else str(content or "")
    if isinstance(normalized, dict):
        return to_markdown(normalized)
    if isinstance(normalized, str):
        return normalized
    return str(content)


# -------------------------
# Generation
# -------------------------
@router.post("/outline", response_model=OutlineResponse, summary="Generate an AI lesson outline")
async def create_outline(
    req: OutlineRequest,
    user_id: str = Depends(get_current_user),
    service: LessonPlanService = Depends(get_lesson_plan_service),
):
    sections = await service.generate_outline(req.topic, req.level)
    logger.info(f"Outline generated for '{req.topic}' ({req.level}) by {user_id}")
    return OutlineResponse(sections=sections)


@router.post("/generate", response_model=GeneratedLessonPlan, summary="Generate a detailed lesson plan")
async def create_lesson_plan(
    req: GenerateRequest,
    user_id: str = Depends(get_current_user),
    service: LessonPlanService = Depends(get_lesson_plan_service),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    """
    Expand the user's section scaffold into a full lesson plan.

    Only one generation per user runs at a time; a second request while one is
    running gets 409. DELETE on the same path cancels the running one.
    """
    result = await guard.run(
        generation_key(user_id),
        lambda: service.generate_lesson_plan(req.topic, req.level, req.sections),
    )
    logger.info(f"Lesson plan generated for '{req.topic}' ({req.level}) by {user_id}")
    return result


@router.delete("/generate", summary="Cancel the running lesson plan generation")
async def cancel_lesson_plan(
    user_id: str = Depends(get_current_user),
    guard: InFlightGuard = Depends(get_inflight_guard),
):
    return {"cancelled": guard.cancel(generation_key(user_id))}


@router.post("/markdown", response_model=MarkdownResponse, summary="Render raw AI output as Markdown")
def render_markdown(req: MarkdownRequest, user_id: str = Depends(get_current_user)):
    return MarkdownResponse(markdown=format_ai_response_as_markdown(req.content))


# -------------------------
# Export
# -------------------------
@router.post("/export/pdf", summary="Export a lesson plan as PDF")
def export_pdf(req: ExportRequest, user_id: str = Depends(get_current_user)):
    try:
        data = export_lesson_plan_pdf(req.content, req.topic, req.level)
    except Exception as e:
        logger.exception("PDF export failed")
        raise ExportError(f"PDF export failed: {e}") from e
    return download(data, export_filename(req.topic, "pdf"), PDF_MEDIA_TYPE)


@router.post("/export/pptx", summary="Export a lesson plan as a slide deck")
def export_pptx(req: ExportRequest, user_id: str = Depends(get_current_user)):
    try:
        data = export_lesson_plan_pptx(slide_text(req.content, lesson_plan_to_markdown), req.topic)
    except Exception as e:
        logger.exception("Slide export failed")
        raise ExportError(f"Slide export failed: {e}") from e
    return download(data, export_filename(req.topic, "pptx"), PPTX_MEDIA_TYPE)
