import logging
from typing import List, Optional, Sequence

from mothermath.models.chat import ChatbotResponse, ChatMessage
from mothermath.services.prompt_builder import build_chat_prompt
from mothermath.utils.ai_client import FailedReply, GatewayClient, ParsedReply, TextReply

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

SUGGESTED_QUESTIONS = [
    "How can I teach addition to Grade 2 students using local examples?",
    "What are effective ways to explain fractions using Cameroonian contexts?",
    "How do I create engaging math lessons about money using CFA francs?",
    "What teaching strategies work best for multiplication tables?",
    "How can parents help their children with math homework at home?",
    "What are common math difficulties for primary school students?",
    "How do I assess student progress in mathematics effectively?",
    "Can you suggest math games using local materials?",
]

CONVERSATION_STARTERS = {
    "teacher": [
        "Help me plan a lesson on shapes using local objects",
        "What's the best way to teach word problems?",
        "How do I differentiate math instruction for different ability levels?",
        "Suggest assessment strategies for primary math",
    ],
    "parent": [
        "How can I help my child with math at home?",
        "My child struggles with math - what should I do?",
        "What math skills should my Grade 2 child know?",
        "How do I make math fun for my child?",
    ],
    "student": [
        "I need help with addition problems",
        "Can you explain subtraction in a simple way?",
        "Help me understand shapes and their properties",
        "Show me how to solve word problems step by step",
    ],
}

APOLOGY = "I apologize, but I encountered an error processing your request. Please try again."


class ChatbotService:
    """MAMA, the curriculum assistant. Replies never raise; failures come back with success=False."""

    def __init__(self, client: GatewayClient):
        self.client = client

    async def send_message(
        self, message: str, history: Sequence[ChatMessage] = (), grade: Optional[str] = None
    ) -> ChatbotResponse:
        if not grade:
            return ChatbotResponse(
                success=False,
                message="Grade level is not selected. Please select a grade to continue.",
                error="Grade not provided",
            )

        request = build_chat_prompt(message, list(history), grade)
        request.model = self.client.settings.chat_model
        reply = await self.client.send_safely(request, response_type="text")

        if isinstance(reply, TextReply):
            return ChatbotResponse(success=True, message=reply.text)
        if isinstance(reply, FailedReply):
            logger.error(f"Chatbot service error: {reply.reason}")
            return ChatbotResponse(success=False, message=APOLOGY, error=reply.reason)
        if isinstance(reply, ParsedReply):
            return ChatbotResponse(success=True, message=reply.raw)
        return ChatbotResponse(success=False, message=APOLOGY, error="Unknown error")

    @staticmethod
    def suggested_questions() -> List[str]:
        return list(SUGGESTED_QUESTIONS)

    @staticmethod
    def conversation_starters(role: Optional[str] = None) -> List[str]:
        """Starters for a teacher, parent or student; anything else gets the general suggestions."""
        return list(CONVERSATION_STARTERS.get((role or "").lower(), SUGGESTED_QUESTIONS))
