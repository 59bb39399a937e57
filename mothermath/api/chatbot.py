import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from mothermath.api.deps import get_chatbot_service
from mothermath.core.security import get_current_user
from mothermath.models.chat import ChatbotResponse, ChatRequest
from mothermath.services.chatbot import ChatbotService

router = APIRouter()

logger = logging.getLogger("chatbot_api")
logger.setLevel(logging.INFO)


@router.post("/messages", response_model=ChatbotResponse, summary="Ask MAMA a question")
async def send_message(
    req: ChatRequest,
    user_id: str = Depends(get_current_user),
    service: ChatbotService = Depends(get_chatbot_service),
):
    """Always 200; a failed gateway call comes back as success=false with an apology message."""
    response = await service.send_message(req.message, req.history, req.grade)
    if not response.success:
        logger.warning(f"Chat reply failed for {user_id}: {response.error}")
    return response


@router.get("/starters", summary="Conversation starters for a role")
def conversation_starters(role: Optional[str] = Query(default=None), user_id: str = Depends(get_current_user)):
    return {"starters": ChatbotService.conversation_starters(role)}


@router.get("/suggestions", summary="Suggested questions for new users")
def suggested_questions(user_id: str = Depends(get_current_user)):
    return {"questions": ChatbotService.suggested_questions()}
