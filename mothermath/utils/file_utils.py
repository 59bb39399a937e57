# utils/file_utils.py
import io
import logging
import re
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PDF_MEDIA_TYPE = "application/pdf"
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


def slugify_topic(topic: str) -> str:
    """Lower-case the topic and replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^a-z0-9]", "_", topic or "", flags=re.IGNORECASE).lower()


def export_filename(topic: str, ext: str, story: bool = False) -> str:
    """e.g. "Addition & Subtraction!" -> "addition___subtraction__lesson_plan.pdf"."""
    suffix = "story_lesson_plan" if story else "lesson_plan"
    return f"{slugify_topic(topic)}_{suffix}.{ext.lstrip('.')}"


def rasterize_logo(path: str, height_px: int = 120) -> Optional[Tuple[bytes, int, int]]:
    """
    Load an image with Pillow and re-encode it as PNG at a fixed pixel height.

    Returns (png_bytes, width_px, height_px), or None when the file is missing or
    not an image Pillow can read (SVG included). Failures are logged, never raised.
    """
    try:
        with Image.open(path) as img:
            img = img.convert("RGBA")
            width = max(1, round(img.width * height_px / img.height))
            resized = img.resize((width, height_px), Image.LANCZOS)
            buf = io.BytesIO()
            resized.save(buf, format="PNG")
            return buf.getvalue(), width, height_px
    except (OSError, UnidentifiedImageError, ValueError, ZeroDivisionError) as e:
        logger.warning(f"Skipping logo {path}: {e}")
        return None
