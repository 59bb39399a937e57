"""
Slide deck export (python-pptx).

The deck is built from the Markdown preview text: a title slide, then one
content slide per section. Sections start at a paragraph that is all caps or
begins with '#'. Body text heights are estimated from character count, so very
long paragraphs can overflow a slide.
"""

import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from mothermath.utils.date_utils import format_long_date

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

SLIDE_WIDTH = 10.0
SLIDE_HEIGHT = 5.625

BACKGROUND = RGBColor.from_string("F9F8FF")
PRIMARY = RGBColor.from_string("9B87F5")
DARK = RGBColor.from_string("333333")
ACCENT = RGBColor.from_string("6A4DE7")
LIGHT = RGBColor.from_string("FFFFFF")
FONT = "Arial"

_BULLET_LINE = re.compile(r"^[-*•]\s+")
_NUMBERED_LINE = re.compile(r"^\d+\.\s")


@dataclass
class SlideSection:
    title: str
    content: List[str] = field(default_factory=list)


# -------------------------
# Text -> sections
# -------------------------
def _is_heading(paragraph: str) -> bool:
    return paragraph.startswith("#") or paragraph.isupper()


def split_sections(text: str) -> List[SlideSection]:
    """Split on blank lines; all-caps or '#' paragraphs open a new section."""
    sections: List[SlideSection] = []
    current: Optional[SlideSection] = None

    for paragraph in re.split(r"\n\s*\n", text or ""):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if _is_heading(paragraph):
            first, _, rest = paragraph.partition("\n")
            title = first.lstrip("#").strip() if paragraph.startswith("#") else paragraph
            current = SlideSection(title=title)
            if paragraph.startswith("#") and rest.strip():
                current.content.append(rest.strip())
            sections.append(current)
        elif current is not None:
            current.content.append(paragraph)
        else:
            current = SlideSection(title="Overview", content=[paragraph])
            sections.append(current)
    return sections


def is_bullet_block(paragraph: str) -> bool:
    lines = [line.strip() for line in paragraph.splitlines() if line.strip()]
    return bool(lines) and all(_BULLET_LINE.match(line) for line in lines)


def is_numbered_block(paragraph: str) -> bool:
    return bool(_NUMBERED_LINE.match(paragraph.strip()))


def estimate_text_height(text: str) -> float:
    """Inches for a wrapped paragraph: ~60 characters per line, 0.16in per line, clamped to 0.3-3.0."""
    lines = math.ceil(len(text) / 60)
    return max(0.3, min(3.0, lines * 0.16))


# -------------------------
# Drawing helpers
# -------------------------
def _textbox(slide, x, y, w, h, text, size, color=DARK, bold=False, italic=False, align=PP_ALIGN.LEFT,
             anchor=MSO_ANCHOR.TOP):
    box = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
    frame = box.text_frame
    frame.word_wrap = True
    frame.vertical_anchor = anchor
    lines = text.split("\n") if text else [""]
    for i, line in enumerate(lines):
        para = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
        para.alignment = align
        run = para.add_run()
        run.text = line
        run.font.name = FONT
        run.font.size = Pt(size)
        run.font.bold = bold
        run.font.italic = italic
        run.font.color.rgb = color
    return box


def _decorate(slide):
    """Background, top bar and footer brand; returns the page indicator box to fill in later."""
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = BACKGROUND

    bar = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, 0, 0, Inches(SLIDE_WIDTH), Inches(0.5))
    bar.fill.solid()
    bar.fill.fore_color.rgb = PRIMARY
    bar.line.fill.background()

    _textbox(slide, 0.5, 5.1, 4, 0.3, "MOTHER OF MATH", 10, color=DARK, bold=True)
    return _textbox(slide, 8.5, 5.1, 1, 0.3, "", 10, color=DARK, align=PP_ALIGN.RIGHT)


class SlideDeckBuilder:
    def __init__(self):
        self.prs = Presentation()
        self.prs.slide_width = Inches(SLIDE_WIDTH)
        self.prs.slide_height = Inches(SLIDE_HEIGHT)
        self._blank = self.prs.slide_layouts[6]
        self._indicators = []

    def new_slide(self):
        slide = self.prs.slides.add_slide(self._blank)
        self._indicators.append(_decorate(slide))
        return slide

    def add_title_slide(self, title: str, subtitle: str, created_on: str) -> None:
        slide = self.new_slide()
        _textbox(slide, 0, 0, SLIDE_WIDTH, 0.5, "MOTHER OF MATH", 16, color=LIGHT, bold=True,
                 align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.MIDDLE)
        _textbox(slide, 0.5, 1.5, 9, 1.5, title, 40, color=PRIMARY, bold=True, align=PP_ALIGN.CENTER,
                 anchor=MSO_ANCHOR.MIDDLE)
        _textbox(slide, 0.5, 3, 9, 0.5, subtitle, 24, color=ACCENT, align=PP_ALIGN.CENTER)
        _textbox(slide, 0.5, 3.5, 9, 0.5, f"Created on: {created_on}", 16, color=DARK, italic=True,
                 align=PP_ALIGN.CENTER)

    def add_section_slide(self, section: SlideSection) -> None:
        slide = self.new_slide()
        _textbox(slide, 0.5, 0.7, 9, 0.5, section.title, 28, color=PRIMARY, bold=True)
        rule = slide.shapes.add_connector(MSO_CONNECTOR.STRAIGHT, Inches(0.5), Inches(1.3), Inches(9.5), Inches(1.3))
        rule.line.color.rgb = PRIMARY
        rule.line.width = Pt(2)

        y = 1.5
        for item in section.content:
            if "\n" in item and is_bullet_block(item):
                points = [_BULLET_LINE.sub("", line.strip()).strip() for line in item.splitlines() if line.strip()]
                _textbox(slide, 0.6, y, 8.8, len(points) * 0.3 + 0.2, "\n".join(f"• {p}" for p in points), 16)
                y += 0.2 + len(points) * 0.25
            elif "\n" in item and is_numbered_block(item):
                points = [line for line in item.splitlines() if line.strip()]
                for i, point in enumerate(points):
                    text = _NUMBERED_LINE.sub("", point).strip()
                    _textbox(slide, 0.6, y, 8.8, 0.3, f"{i + 1}. {text}", 16)
                    y += 0.3
            else:
                height = estimate_text_height(item)
                _textbox(slide, 0.5, y, 9, height, item, 16)
                y += height + 0.1
            y += 0.1

    def finish(self) -> bytes:
        total = len(self._indicators)
        for i, box in enumerate(self._indicators, start=1):
            run = box.text_frame.paragraphs[0].runs[0]
            run.text = f"{i} / {total}"
        buf = io.BytesIO()
        self.prs.save(buf)
        return buf.getvalue()


def build_slide_deck(text: str, title: str, subtitle: str, created: Optional[date] = None) -> bytes:
    builder = SlideDeckBuilder()
    builder.add_title_slide(title, subtitle, format_long_date(created))
    for section in split_sections(text):
        builder.add_section_slide(section)
    return builder.finish()


def export_lesson_plan_pptx(content: str, topic: str, created: Optional[date] = None) -> bytes:
    return build_slide_deck(content, topic, "Lesson Plan", created)


def export_story_plan_pptx(content: str, topic: str, created: Optional[date] = None) -> bytes:
    return build_slide_deck(content, f"Story Lesson Plan: {topic}", "Mathematical Storytelling Approach", created)
