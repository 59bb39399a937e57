import logging
import re
from typing import List, Sequence

from mothermath.core.config import VoiceSettings
from mothermath.core.errors import (
    EmptyTranscriptError,
    NoQuestionsError,
    TranscriptRewriteError,
    UnexpectedResponseError,
)
from mothermath.models.interview import (
    Interview,
    InterviewCreate,
    TranscriptEntry,
    VoiceSessionConfig,
)
from mothermath.services.prompt_builder import (
    build_feedback_prompt,
    build_interview_questions_prompt,
    build_interview_session_prompt,
)
from mothermath.services.repositories import InterviewRepository
from mothermath.utils.ai_client import GatewayClient, TextReply

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

_LIST_MARKER = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")


def parse_question_lines(text: str) -> List[str]:
    """One question per non-empty line, with any numbering or bullet stripped."""
    questions = []
    for line in text.splitlines():
        cleaned = _LIST_MARKER.sub("", line).strip()
        if cleaned:
            questions.append(cleaned)
    return questions


async def generate_feedback_text(client: GatewayClient, transcript: Sequence[TranscriptEntry]) -> str:
    """Run the feedback prompt; shared by the interview routes and POST /analyze."""
    request = build_feedback_prompt(transcript)
    request.model = client.settings.feedback_model
    reply = await client.send(request, response_type="text")
    if not isinstance(reply, TextReply) or not reply.text:
        raise UnexpectedResponseError("The AI returned empty feedback.")
    return reply.text


class InterviewService:
    """Mock interview lifecycle: setup, questions, transcript, feedback."""

    def __init__(self, repository: InterviewRepository, client: GatewayClient):
        self.repository = repository
        self.client = client

    async def generate_questions(self, role: str, level: str, topic: str, focus: str, minutes: int) -> List[str]:
        request = build_interview_questions_prompt(role, level, topic, focus, minutes)
        request.model = self.client.settings.questions_model
        reply = await self.client.send(request, response_type="text")
        questions = parse_question_lines(reply.text) if isinstance(reply, TextReply) else []
        if not questions:
            raise UnexpectedResponseError("The AI did not return any interview questions.")
        logger.info(f"Generated {len(questions)} interview questions on '{topic}'")
        return questions

    def create(self, user_id: str, data: InterviewCreate) -> Interview:
        if not data.topic.strip() or not data.questions:
            raise NoQuestionsError()
        return self.repository.create(user_id, data)

    def list_for_user(self, user_id: str) -> List[Interview]:
        return self.repository.list_for_user(user_id)

    def get(self, interview_id: str, user_id: str) -> Interview:
        return self.repository.get(interview_id, user_id)

    def delete(self, interview_id: str, user_id: str) -> None:
        self.repository.delete(interview_id, user_id)
        logger.info(f"Interview {interview_id} deleted by {user_id}")

    def update_transcript(self, interview_id: str, user_id: str, transcript: List[TranscriptEntry]) -> Interview:
        """Store the transcript. The stored one must be a prefix of the new one."""
        current = self.repository.get(interview_id, user_id)
        existing = current.transcript or []
        if len(transcript) < len(existing) or any(
            old.role != new.role or old.content != new.content for old, new in zip(existing, transcript)
        ):
            raise TranscriptRewriteError()
        return self.repository.set_transcript(interview_id, user_id, transcript)

    async def generate_feedback(self, interview_id: str, user_id: str) -> str:
        """Feedback is generated once; later calls return the stored text."""
        interview = self.repository.get(interview_id, user_id)
        if interview.feedback:
            return interview.feedback
        if not interview.transcript:
            raise EmptyTranscriptError("Transcript is empty, cannot generate feedback.")

        feedback = await generate_feedback_text(self.client, interview.transcript)
        self.repository.set_feedback(interview_id, user_id, feedback)
        logger.info(f"Feedback stored for interview {interview_id}")
        return feedback

    def session_config(self, interview_id: str, user_id: str, user_name: str, voice: VoiceSettings) -> VoiceSessionConfig:
        """Values the voice client needs to start the call; the voice key itself stays on the server."""
        voice.require_credentials()
        interview = self.repository.get(interview_id, user_id)
        system_prompt = build_interview_session_prompt(user_name, interview.questions)
        return VoiceSessionConfig(
            assistant_id=voice.assistant_id,
            variable_values={"userName": user_name, "systemPrompt": system_prompt},
        )
