"""
Voice interview agent.

Drives one mock-interview call over an injected voice client. The agent
subscribes its listeners when the call starts and removes them when the call
ends, errors, or the agent is closed, so sessions never share handlers.

States: idle -> connecting -> connected -> ended, with error reachable from
connecting or connected. Events that arrive in a state that does not expect
them are ignored.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from mothermath.models.interview import TranscriptEntry
from mothermath.services.prompt_builder import build_interview_session_prompt

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

Handler = Callable[..., Any]
SaveTranscript = Callable[[str, List[TranscriptEntry]], Awaitable[Any]]


class VoiceClient(Protocol):
    """The subset of the voice SDK the agent uses."""

    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str, handler: Handler) -> None: ...

    def start(self, assistant_id: str, options: Dict[str, Any]) -> Any: ...

    def stop(self) -> Any: ...

    def set_muted(self, muted: bool) -> Any: ...


class CallState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ENDED = "ended"
    ERROR = "error"


class InterviewAgent:
    def __init__(
        self,
        voice_client: VoiceClient,
        assistant_id: str,
        interview_id: str,
        user_name: str,
        questions: Sequence[str],
        save_transcript: SaveTranscript,
    ):
        self.voice_client = voice_client
        self.assistant_id = assistant_id
        self.interview_id = interview_id
        self.user_name = user_name
        self.questions = list(questions)
        self.save_transcript = save_transcript

        self.state = CallState.IDLE
        self.transcript: List[TranscriptEntry] = []
        self.active_speaker = "none"
        self.is_muted = False
        self.error_message: Optional[str] = None
        self.save_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._listeners: Dict[str, Handler] = {
            "call-start": self._on_call_start,
            "call-end": self._on_call_end,
            "error": self._on_error,
            "speaker-start": self._on_speaker_start,
            "speaker-end": self._on_speaker_end,
            "message": self._on_message,
        }
        self._subscribed = False

    # -------------------------
    # Listener lifecycle
    # -------------------------
    def _subscribe(self) -> None:
        if self._subscribed:
            return
        for event, handler in self._listeners.items():
            self.voice_client.on(event, handler)
        self._subscribed = True

    def _unsubscribe(self) -> None:
        if not self._subscribed:
            return
        for event, handler in self._listeners.items():
            self.voice_client.off(event, handler)
        self._subscribed = False

    def close(self) -> None:
        """Release the voice client; call when the session's owner goes away."""
        self._unsubscribe()

    # -------------------------
    # User actions
    # -------------------------
    async def start(self) -> bool:
        """Start the call. Only valid from idle; returns False otherwise."""
        if self.state != CallState.IDLE:
            logger.warning(f"Ignoring start for interview {self.interview_id} in state {self.state.value}")
            return False

        system_prompt = build_interview_session_prompt(self.user_name, self.questions)
        self._loop = asyncio.get_running_loop()
        self._subscribe()
        self.state = CallState.CONNECTING
        try:
            result = self.voice_client.start(
                self.assistant_id,
                {"variableValues": {"userName": self.user_name, "systemPrompt": system_prompt}},
            )
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._on_error(e)
        return True

    async def stop(self) -> bool:
        """Hang up. Only valid while connected."""
        if self.state != CallState.CONNECTED:
            return False
        result = self.voice_client.stop()
        if inspect.isawaitable(result):
            await result
        return True

    async def toggle_mute(self) -> bool:
        """Flip the microphone while a call is live; returns the resulting mute state."""
        if self.state not in (CallState.CONNECTING, CallState.CONNECTED):
            return self.is_muted
        result = self.voice_client.set_muted(not self.is_muted)
        if inspect.isawaitable(result):
            await result
        self.is_muted = not self.is_muted
        return self.is_muted

    # -------------------------
    # SDK events
    # -------------------------
    def _on_call_start(self, *args) -> None:
        if self.state == CallState.CONNECTING:
            self.state = CallState.CONNECTED

    def _on_message(self, message: Dict[str, Any], *args) -> None:
        if self.state != CallState.CONNECTED or not isinstance(message, dict):
            return
        # Partial transcripts repeat and get revised; only final ones are kept
        if message.get("type") != "transcript" or message.get("transcriptType") != "final":
            return
        if message.get("role") in ("user", "assistant"):
            # Some SDKs send null text for empty utterances
            content = message.get("transcript") or ""
            self.transcript.append(TranscriptEntry(role=message.get("role"), content=content))

    def _on_speaker_start(self, speaker: Any = None, *args) -> None:
        if self.state not in (CallState.CONNECTING, CallState.CONNECTED):
            return
        if isinstance(speaker, dict):
            speaker = speaker.get("speaker")
        self.active_speaker = speaker or "none"

    def _on_speaker_end(self, *args) -> None:
        if self.state in (CallState.CONNECTING, CallState.CONNECTED):
            self.active_speaker = "none"

    def _on_call_end(self, *args) -> None:
        if self.state not in (CallState.CONNECTING, CallState.CONNECTED):
            return
        self.state = CallState.ENDED
        self.active_speaker = "none"
        self._unsubscribe()
        if self.transcript:
            self._schedule_save()

    def _schedule_save(self) -> None:
        # The SDK may fire call-end from its own thread; the save always runs on the agent's loop
        try:
            on_loop = asyncio.get_running_loop() is self._loop
        except RuntimeError:
            on_loop = False
        if on_loop:
            self._begin_save()
        else:
            self._loop.call_soon_threadsafe(self._begin_save)

    def _begin_save(self) -> None:
        self.save_task = self._loop.create_task(self._save())

    def _on_error(self, error: Any = None, *args) -> None:
        if self.state not in (CallState.CONNECTING, CallState.CONNECTED):
            return
        logger.error(f"Voice session error for interview {self.interview_id}: {error}")
        self.error_message = getattr(error, "message", None) or str(error or "") or "An unknown error occurred."
        self.state = CallState.ERROR
        self._unsubscribe()

    async def _save(self) -> None:
        try:
            await self.save_transcript(self.interview_id, list(self.transcript))
        except Exception as e:
            # The call is over either way; the state stays ended
            logger.error(f"Failed to save transcript for interview {self.interview_id}: {e}")
            self.error_message = "Could not save the final transcript."
