"""
PDF export for lesson plans and story lesson plans (reportlab).

Layout: A4 pages with a green header band on every page, a "Page i / N"
footer when the document runs past one page, a centered row of partner
logos, a title block and bordered tables. Text that is not a JSON plan is
rendered as a plain heading-based walk instead of tables.
"""

import io
import logging
import re
from typing import Any, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from mothermath.core.config import LOGO_PATHS
from mothermath.models.lesson_plan import CanonicalLessonPlanDoc, StoryLessonPlan
from mothermath.services.schema_mapper import pad_pairs, to_canonical_lesson_plan, to_story_lesson_plan
from mothermath.utils.file_utils import rasterize_logo
from mothermath.utils.normalizer import normalize

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PRIMARY = colors.HexColor("#009e60")
SECONDARY = colors.HexColor("#4b371c")
GRID = colors.HexColor("#C8C8C8")
STRIPE = colors.HexColor("#F5F5F5")
STORY_LABEL_FILL = colors.HexColor("#E8F5E8")
FOOTER_GREY = colors.HexColor("#666666")
BODY_GREY = colors.HexColor("#333333")

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 15 * mm
HEADER_HEIGHT = 25 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
MAX_LOGOS = 4
LOGO_PIXEL_HEIGHT = 120

LESSON_HEADER = "Mother of Math | Lesson Plan"
STORY_HEADER = "Mother of Math | Story Lesson Plan"


# -------------------------
# Page decoration
# -------------------------
def branded_canvas(header_title: str):
    """Canvas class that draws the header band and, for multi-page output, the page footer."""

    class BrandedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._page_states = []

        def showPage(self):
            # Defer drawing until the page count is known
            self._page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._page_states)
            for state in self._page_states:
                self.__dict__.update(state)
                self._draw_header()
                if total > 1:
                    self._draw_footer(total)
                super().showPage()
            super().save()

        def _draw_header(self):
            self.saveState()
            self.setFillColor(PRIMARY)
            self.rect(0, PAGE_HEIGHT - HEADER_HEIGHT, PAGE_WIDTH, HEADER_HEIGHT, stroke=0, fill=1)
            self.setFillColor(colors.white)
            self.setFont("Helvetica-Bold", 18)
            self.drawCentredString(PAGE_WIDTH / 2, PAGE_HEIGHT - 16 * mm, header_title)
            self.restoreState()

        def _draw_footer(self, total: int):
            self.saveState()
            self.setFillColor(FOOTER_GREY)
            self.setFont("Helvetica", 9)
            self.drawCentredString(PAGE_WIDTH / 2, 10 * mm, f"Page {self._pageNumber} / {total}")
            self.restoreState()

    return BrandedCanvas


# -------------------------
# Text helpers
# -------------------------
def clean_text(text: Any) -> str:
    """Drop markdown emphasis and heading marks; single asterisks become bullets."""
    if text is None:
        return ""
    text = str(text)
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
    text = re.sub(r"##\s*", "", text)
    return text.replace("*", "•")


def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("PlanTitle", parent=base["Title"], fontSize=22, leading=26,
                                textColor=SECONDARY, alignment=TA_CENTER),
        "subtitle": ParagraphStyle("PlanSubtitle", parent=base["Normal"], fontSize=14, leading=18,
                                   textColor=SECONDARY, alignment=TA_CENTER),
        "heading": ParagraphStyle("SectionHeading", parent=base["Heading2"], fontSize=14, leading=18,
                                  textColor=PRIMARY, spaceBefore=8, spaceAfter=4),
        "cell": ParagraphStyle("Cell", parent=base["Normal"], fontSize=10, leading=13),
        "head": ParagraphStyle("HeadCell", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=11,
                               leading=14, textColor=colors.white),
        "label": ParagraphStyle("LabelCell", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=10,
                                leading=13),
        "h1": ParagraphStyle("MdH1", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=16, leading=20,
                             spaceBefore=6),
        "h2": ParagraphStyle("MdH2", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=14, leading=18,
                             spaceBefore=4),
        "h3": ParagraphStyle("MdH3", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=12, leading=15,
                             spaceBefore=2),
        "body": ParagraphStyle("MdBody", parent=base["Normal"], fontSize=10, leading=13, textColor=BODY_GREY),
    }


STYLES = _styles()


def _para(text: Any, style: str = "cell") -> Paragraph:
    return Paragraph(escape(clean_text(text)).replace("\n", "<br/>"), STYLES[style])


def _bullet_para(items: Iterable[Any]) -> Paragraph:
    return Paragraph("<br/>".join(f"• {escape(clean_text(i))}" for i in items), STYLES["cell"])


def _bullet_cell(item: str) -> Paragraph:
    return _para(f"• {item}" if item else "")


# -------------------------
# Tables
# -------------------------
def _base_table_style(header: bool = True) -> List[tuple]:
    style = [
        ("GRID", (0, 0), (-1, -1), 0.5, GRID),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    if header:
        style.append(("BACKGROUND", (0, 0), (-1, 0), PRIMARY))
    return style


def activity_rows(left: Sequence[Any], right: Sequence[Any]) -> List[List[str]]:
    """Body rows of a two-column activity table: max(N, M) rows, missing cells empty."""
    return [[a, b] for a, b in pad_pairs(list(left or []), list(right or []))]


def activity_table(left_title: str, right_title: str, left: Sequence[Any], right: Sequence[Any]) -> Table:
    rows = [[_para(left_title, "head"), _para(right_title, "head")]]
    rows += [[_para(a), _para(b)] for a, b in activity_rows(left, right)]
    table = Table(rows, colWidths=[CONTENT_WIDTH / 2] * 2, repeatRows=1, splitInRow=1)
    style = _base_table_style()
    if len(rows) > 1:
        style.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE]))
    table.setStyle(TableStyle(style))
    return table


def objectives_table(objectives: Sequence[str], materials: Sequence[str], objectives_title: str) -> Table:
    rows = [[_para(objectives_title, "head"), _para("Materials", "head")]]
    rows += [[_bullet_cell(a), _bullet_cell(b)] for a, b in pad_pairs(list(objectives), list(materials))]
    table = Table(rows, colWidths=[CONTENT_WIDTH / 2] * 2, repeatRows=1, splitInRow=1)
    table.setStyle(TableStyle(_base_table_style()))
    return table


def labelled_table(entries: Sequence[tuple], label_fill=PRIMARY, label_style: str = "head") -> Optional[Table]:
    """Two-column label | text table; None when there is nothing to show."""
    rows = [[_para(label, label_style), body if isinstance(body, Paragraph) else _para(body)]
            for label, body in entries]
    if not rows:
        return None
    table = Table(rows, colWidths=[40 * mm, CONTENT_WIDTH - 40 * mm], splitInRow=1)
    style = _base_table_style(header=False)
    style.append(("BACKGROUND", (0, 0), (0, -1), label_fill))
    table.setStyle(TableStyle(style))
    return table


# -------------------------
# Shared blocks
# -------------------------
def logo_row(paths: Sequence[str], height: float, padding: float) -> Optional[Table]:
    """Up to four logos side by side; each one that fails to load is skipped."""
    images = []
    for path in list(paths)[:MAX_LOGOS]:
        loaded = rasterize_logo(path, LOGO_PIXEL_HEIGHT)
        if loaded is None:
            continue
        data, width_px, height_px = loaded
        images.append(Image(io.BytesIO(data), width=height * width_px / height_px, height=height))
    if not images:
        return None
    table = Table([images], hAlign="CENTER")
    table.setStyle(TableStyle([
        ("LEFTPADDING", (0, 0), (-1, -1), padding / 2),
        ("RIGHTPADDING", (0, 0), (-1, -1), padding / 2),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    return table


def _title_block(title: str, level: str) -> list:
    return [
        Paragraph(escape(title), STYLES["title"]),
        Paragraph(escape(f"Class Level: {level}"), STYLES["subtitle"]),
        Spacer(1, 6 * mm),
    ]


def markdown_flowables(text: str) -> list:
    """Heading-based walk over plain or markdown text, used when the content is not a JSON plan."""
    story = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            story.append(Spacer(1, 3 * mm))
        elif stripped.startswith("### "):
            story.append(_para(stripped[4:], "h3"))
        elif stripped.startswith("## "):
            story.append(_para(stripped[3:], "h2"))
        elif stripped.startswith("# "):
            story.append(_para(stripped[2:], "h1"))
        else:
            story.append(_para(stripped, "body"))
    return story


def _render(flowables: list, header_title: str) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=HEADER_HEIGHT + 5 * mm,
        bottomMargin=20 * mm,
        title=header_title,
        author="Mother of Math",
    )
    doc.build(flowables, canvasmaker=branded_canvas(header_title))
    return buf.getvalue()


def _parse_plan(content: Any):
    """Return the normalized dict for JSON content, or the text for anything else."""
    if isinstance(content, (CanonicalLessonPlanDoc, StoryLessonPlan)):
        return content
    if isinstance(content, (str, dict)):
        normalized = normalize(content)
        if isinstance(normalized, dict):
            return normalized
        if isinstance(normalized, str):
            return normalized
    return str(content or "")


# -------------------------
# Lesson plan
# -------------------------
def lesson_plan_flowables(plan: CanonicalLessonPlanDoc) -> list:
    story = []
    story.append(objectives_table(plan.lesson_objectives, plan.materials, "Lesson Objectives"))
    story.append(Spacer(1, 6 * mm))

    for section in plan.sections:
        story.append(_para(section.title or "Section", "heading"))
        story.append(activity_table("Teacher Activities", "Learner Activities",
                                    section.teacher_activities, section.learner_activities))
        story.append(Spacer(1, 4 * mm))

    final = []
    if plan.evaluation and plan.evaluation.description:
        final.append(("Evaluation", plan.evaluation.description))
    if plan.assignment and plan.assignment.description:
        final.append(("Assignment", plan.assignment.description))
    table = labelled_table(final)
    if table is not None:
        story.append(table)
    return story


def export_lesson_plan_pdf(content: Any, topic: str, level: str = "",
                           logo_paths: Optional[Sequence[str]] = None) -> bytes:
    """Render a lesson plan (typed, dict or raw gateway text) to PDF bytes."""
    parsed = _parse_plan(content)
    logos = logo_row(LOGO_PATHS if logo_paths is None else logo_paths, height=8 * mm, padding=4 * mm)
    story = [logos, Spacer(1, 4 * mm)] if logos is not None else []

    if isinstance(parsed, str):
        logger.info("Lesson plan content is not JSON; exporting as plain text")
        story += _title_block(topic, level)
        story += markdown_flowables(parsed)
    else:
        plan = to_canonical_lesson_plan(parsed)
        story += _title_block(topic, plan.grade_level or level)
        story += lesson_plan_flowables(plan)

    return _render(story, LESSON_HEADER)


# -------------------------
# Story lesson plan
# -------------------------
def story_plan_flowables(plan: StoryLessonPlan) -> list:
    story = []
    overview = []
    if plan.story_theme:
        overview.append(("Story Theme", plan.story_theme))
    if plan.story_overview:
        overview.append(("Story Overview", plan.story_overview))
    characters = [c.label() for c in plan.characters if c.label()]
    if characters:
        overview.append(("Characters", _bullet_para(characters)))
    if plan.setting:
        overview.append(("Setting", plan.setting))
    table = labelled_table(overview)
    if table is not None:
        story += [table, Spacer(1, 6 * mm)]

    story.append(objectives_table(plan.lesson_objectives, plan.materials, "Learning Objectives"))
    story.append(Spacer(1, 6 * mm))

    for index, section in enumerate(plan.story_sections):
        story.append(_para(section.title or f"Part {index + 1}", "heading"))
        content = []
        if section.story_content:
            content.append(("Story Content", section.story_content))
        if section.math_concept:
            content.append(("Math Concept", section.math_concept))
        table = labelled_table(content, label_fill=STORY_LABEL_FILL, label_style="label")
        if table is not None:
            story += [table, Spacer(1, 3 * mm)]
        story.append(activity_table("Teacher Guidance", "Student Activities",
                                    section.teacher_guidance, section.student_activities))
        story.append(Spacer(1, 4 * mm))

    final = []
    if plan.assessment and plan.assessment.description:
        final.append(("Assessment", plan.assessment.description))
    if plan.practice_activities:
        final.append(("Practice Activities", _bullet_para(plan.practice_activities)))
    if plan.extension_activities:
        final.append(("Extension Activities", _bullet_para(plan.extension_activities)))
    if plan.cultural_connections:
        final.append(("Cultural Connections", plan.cultural_connections))
    table = labelled_table(final)
    if table is not None:
        story.append(table)
    return story


def export_story_plan_pdf(content: Any, topic: str, level: str = "",
                          logo_paths: Optional[Sequence[str]] = None) -> bytes:
    parsed = _parse_plan(content)
    logos = logo_row(LOGO_PATHS if logo_paths is None else logo_paths, height=12 * mm, padding=6 * mm)
    story = [logos, Spacer(1, 4 * mm)] if logos is not None else []

    if isinstance(parsed, str):
        logger.info("Story plan content is not JSON; exporting as plain text")
        story += _title_block(f"Story Lesson Plan: {topic}", level)
        story += markdown_flowables(parsed)
    else:
        plan = to_story_lesson_plan(parsed)
        story += _title_block(f"Story Lesson Plan: {topic}", plan.grade_level or level)
        story += story_plan_flowables(plan)

    return _render(story, STORY_HEADER)
