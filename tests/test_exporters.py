import io
import json
from datetime import date

from PIL import Image
from PyPDF2 import PdfReader
from pptx import Presentation

from mothermath.services.exporters.pdf_exporter import (
    activity_rows,
    clean_text,
    export_lesson_plan_pdf,
    export_story_plan_pdf,
    logo_row,
)
from mothermath.services.exporters.pptx_exporter import (
    estimate_text_height,
    export_lesson_plan_pptx,
    export_story_plan_pptx,
    is_bullet_block,
    is_numbered_block,
    split_sections,
)
from mothermath.services.schema_mapper import lesson_plan_to_markdown
from mothermath.utils.file_utils import export_filename, rasterize_logo, slugify_topic


# -------------------------
# Filenames
# -------------------------
def test_export_filename():
    assert export_filename("Addition & Subtraction!", "pdf") == "addition___subtraction__lesson_plan.pdf"
    assert export_filename("Shapes", ".pptx", story=True) == "shapes_story_lesson_plan.pptx"
    assert slugify_topic("") == ""


# -------------------------
# PDF
# -------------------------
def test_activity_rows_keep_the_longer_column():
    rows = activity_rows(["a", "b", "c"], ["x"])
    assert rows == [["a", "x"], ["b", ""], ["c", ""]]
    assert activity_rows([], ["x", "y"]) == [["", "x"], ["", "y"]]
    assert activity_rows(None, None) == []


def test_clean_text_strips_markdown():
    assert clean_text("**Bold** and ## heading") == "Bold and heading"
    assert clean_text("* item") == "• item"
    assert clean_text(None) == ""


def test_lesson_plan_pdf_from_json(lesson_plan_payload):
    data = export_lesson_plan_pdf(json.dumps({"lessonPlan": lesson_plan_payload}), "Addition", "Primary 2",
                                  logo_paths=[])
    assert data.startswith(b"%PDF")


def test_lesson_plan_pdf_from_plain_text():
    data = export_lesson_plan_pdf("# Fractions\n\nHalves and quarters.", "Fractions", "Primary 4", logo_paths=[])
    assert data.startswith(b"%PDF")


def test_story_plan_pdf():
    plan = {
        "title": "Ambe at the Market",
        "characters": ["Ambe", {"name": "Manka", "description": "Sister"}],
        "storySections": [{"storyContent": "Ambe counts.", "teacherGuidance": ["Ask"], "studentActivities": []}],
        "culturalConnections": "Market days",
    }
    data = export_story_plan_pdf({"storyLessonPlan": plan}, "Counting", "Primary 1", logo_paths=[])
    assert data.startswith(b"%PDF")


def test_missing_and_unreadable_logos_are_skipped(tmp_path):
    svg = tmp_path / "logo.svg"
    svg.write_text("<svg xmlns='http://www.w3.org/2000/svg'/>")
    assert rasterize_logo(str(tmp_path / "missing.png")) is None
    assert rasterize_logo(str(svg)) is None
    assert logo_row([str(svg), str(tmp_path / "missing.png")], height=10, padding=4) is None

    data = export_lesson_plan_pdf("Plain text", "Topic", logo_paths=[str(svg)])
    assert data.startswith(b"%PDF")


def page_texts(data):
    return [page.extract_text() for page in PdfReader(io.BytesIO(data)).pages]


def test_single_page_pdf_has_header_and_no_footer(lesson_plan_payload):
    pages = page_texts(export_lesson_plan_pdf(lesson_plan_payload, "Addition", logo_paths=[]))
    assert len(pages) == 1
    assert "Mother of Math | Lesson Plan" in pages[0]
    assert "Page 1" not in pages[0]


def test_long_cells_span_pages(lesson_plan_payload):
    plan = dict(lesson_plan_payload)
    plan["lessonObjectives"] = [f"Objective number {i} about adding money" for i in range(80)]
    plan["sections"] = [{
        "title": "PRESENTATION",
        "teacherActivities": ["Count the bottle tops aloud with the class. " * 200],
        "learnerActivities": ["Count along"],
    }]
    plan["evaluation"] = {"description": "Learners add the prices of two items. " * 120}

    pages = page_texts(export_lesson_plan_pdf(plan, "Addition", "Primary 2", logo_paths=[]))
    total = len(pages)
    assert total > 2
    for number, text in enumerate(pages, start=1):
        assert "Mother of Math | Lesson Plan" in text
        assert f"Page {number} / {total}" in text
    assert "Objective number 79" in "".join(pages)


def test_long_story_content_spans_pages():
    plan = {
        "title": "Ambe at the Market",
        "characters": [f"Trader {i}" for i in range(60)],
        "storySections": [{"storyContent": "Ambe counts the oranges one by one. " * 250}],
    }
    pages = page_texts(export_story_plan_pdf({"storyLessonPlan": plan}, "Counting", logo_paths=[]))
    assert len(pages) > 1
    assert all("Mother of Math | Story Lesson Plan" in text for text in pages)


def test_png_logo_is_rasterized(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGB", (300, 100), "green").save(path)
    png, width, height = rasterize_logo(str(path), height_px=60)
    assert (width, height) == (180, 60)
    assert png.startswith(b"\x89PNG")
    assert logo_row([str(path)] * 6, height=10, padding=4) is not None


# -------------------------
# Slides
# -------------------------
def test_split_sections():
    text = "Intro paragraph\n\n# Objectives\n- Add\n- Subtract\n\nMATERIALS\n\nChalk and slate"
    sections = split_sections(text)
    assert [s.title for s in sections] == ["Overview", "Objectives", "MATERIALS"]
    assert sections[0].content == ["Intro paragraph"]
    assert sections[1].content == ["- Add\n- Subtract"]
    assert sections[2].content == ["Chalk and slate"]


def test_split_sections_of_empty_text():
    assert split_sections("") == []


def test_block_detection():
    assert is_bullet_block("- one\n* two\n• three")
    assert not is_bullet_block("**Teacher Activities:**\n- one")
    assert is_numbered_block("1. First\n2. Second")
    assert not is_numbered_block("Plain text")


def test_estimate_text_height_is_clamped():
    assert estimate_text_height("") == 0.3
    assert estimate_text_height("x" * 600) == 10 * 0.16
    assert estimate_text_height("x" * 10000) == 3.0


def test_lesson_plan_pptx(lesson_plan_payload):
    markdown = lesson_plan_to_markdown(lesson_plan_payload)
    data = export_lesson_plan_pptx(markdown, "Addition", created=date(2024, 3, 5))
    assert data.startswith(b"PK")

    prs = Presentation(io.BytesIO(data))
    slides = list(prs.slides)
    assert len(slides) == len(split_sections(markdown)) + 1
    title_texts = [shape.text_frame.text for shape in slides[0].shapes if shape.has_text_frame]
    assert "Created on: March 5, 2024" in title_texts
    assert f"1 / {len(slides)}" in title_texts


def test_story_plan_pptx_title():
    data = export_story_plan_pptx("STORY\n\nOnce upon a time", "Counting", created=date(2024, 1, 1))
    prs = Presentation(io.BytesIO(data))
    texts = [shape.text_frame.text for shape in prs.slides[0].shapes if shape.has_text_frame]
    assert "Story Lesson Plan: Counting" in texts
    assert "Mathematical Storytelling Approach" in texts
