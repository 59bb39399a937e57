import logging
import re

from mothermath.core.errors import InputValidationError, UnexpectedResponseError
from mothermath.services.prompt_builder import build_student_work_prompt
from mothermath.utils.ai_client import GatewayClient, TextReply

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

_DATA_URL = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,")
_BASE64 = re.compile(r"^[A-Za-z0-9+/=\s]+$")


def as_image_data_url(image: str, mime_type: str = "image/jpeg") -> str:
    """Accept a data URL as-is, or wrap bare base64 image data in one."""
    image = (image or "").strip()
    if not image:
        raise InputValidationError("Please upload an image of the student's work.")
    if _DATA_URL.match(image):
        return image
    if not _BASE64.match(image):
        raise InputValidationError("The uploaded image could not be read.")
    return f"data:{mime_type};base64,{image}"


class StudentWorkService:
    """Math error analysis of a photo of student work."""

    def __init__(self, client: GatewayClient):
        self.client = client

    async def analyze(self, message: str, image: str) -> str:
        request = build_student_work_prompt(message or "Please analyze this student's work.", as_image_data_url(image))
        reply = await self.client.send(request, response_type="text")
        if not isinstance(reply, TextReply) or not reply.text:
            raise UnexpectedResponseError("The AI returned an empty analysis.")
        logger.info(f"Student work analyzed ({len(reply.text)} chars)")
        return reply.text
