import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from mothermath.api.deps import get_gateway_client
from mothermath.core.errors import AIClientError, ConfigurationError
from mothermath.core.security import get_current_user
from mothermath.models.interview import AnalyzeRequest, TranscriptEntry
from mothermath.services.interview_service import generate_feedback_text
from mothermath.utils.ai_client import GatewayClient

router = APIRouter()

logger = logging.getLogger("analyze_api")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.addHandler(handler)

TRANSCRIPT_ADAPTER = TypeAdapter(List[TranscriptEntry])


@router.post("/analyze", summary="Feedback on a mock interview transcript")
async def analyze_transcript(
    req: AnalyzeRequest,
    user_id: str = Depends(get_current_user),
    client: GatewayClient = Depends(get_gateway_client),
):
    """
    Transcript analysis endpoint.

    Responses:
    - 400 {"error"} when the transcript is missing, empty or not a list of messages.
    - 500 {"error"} when the gateway key is not configured or the gateway call fails.
    - 200 {"feedback"} otherwise.
    """
    invalid = JSONResponse(status_code=400, content={"error": "A valid transcript is required."})
    if not isinstance(req.transcript, list) or not req.transcript:
        return invalid
    try:
        transcript = TRANSCRIPT_ADAPTER.validate_python(req.transcript)
    except ValidationError:
        return invalid

    try:
        feedback = await generate_feedback_text(client, transcript)
    except ConfigurationError as e:
        logger.error(f"Analyze called without gateway configuration: {e}")
        return JSONResponse(status_code=500, content={"error": "API key not configured."})
    except AIClientError as e:
        logger.error(f"Error calling the AI gateway for {user_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to get feedback from AI."})

    return {"feedback": feedback}
