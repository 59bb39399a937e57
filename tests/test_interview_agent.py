import asyncio
import threading
from collections import defaultdict

import pytest

from mothermath.core.errors import NoQuestionsError
from mothermath.models.interview import TranscriptEntry
from mothermath.services.interview_agent import CallState, InterviewAgent


class FakeVoiceClient:
    """Records SDK calls and lets a test fire events at the subscribed handlers."""

    def __init__(self, fail_on_start=None):
        self.handlers = defaultdict(list)
        self.started_with = None
        self.stopped = False
        self.muted = None
        self.fail_on_start = fail_on_start

    def on(self, event, handler):
        self.handlers[event].append(handler)

    def off(self, event, handler):
        self.handlers[event].remove(handler)

    def start(self, assistant_id, options):
        if self.fail_on_start:
            raise self.fail_on_start
        self.started_with = (assistant_id, options)

    def stop(self):
        self.stopped = True

    def set_muted(self, muted):
        self.muted = muted

    def emit(self, event, *args):
        for handler in list(self.handlers[event]):
            handler(*args)

    def subscriber_count(self):
        return sum(len(h) for h in self.handlers.values())


def final(role, text):
    return {"type": "transcript", "transcriptType": "final", "role": role, "transcript": text}


class Recorder:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def __call__(self, interview_id, transcript):
        if self.fail:
            raise RuntimeError("database down")
        self.calls.append((interview_id, transcript))


def make_agent(voice, save=None, questions=("Why do you teach?", "How would you explain halves?")):
    return InterviewAgent(
        voice_client=voice,
        assistant_id="assistant-123",
        interview_id="iv-1",
        user_name="Ngum",
        questions=questions,
        save_transcript=save or Recorder(),
    )


async def connect(agent, voice):
    assert await agent.start() is True
    voice.emit("call-start")
    assert agent.state == CallState.CONNECTED


@pytest.mark.asyncio
async def test_start_passes_session_variables():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await agent.start()

    assert agent.state == CallState.CONNECTING
    assistant_id, options = voice.started_with
    assert assistant_id == "assistant-123"
    variables = options["variableValues"]
    assert variables["userName"] == "Ngum"
    assert "1. Why do you teach?" in variables["systemPrompt"]


@pytest.mark.asyncio
async def test_start_requires_questions():
    voice = FakeVoiceClient()
    agent = make_agent(voice, questions=())
    with pytest.raises(NoQuestionsError):
        await agent.start()
    assert agent.state == CallState.IDLE
    assert voice.subscriber_count() == 0


@pytest.mark.asyncio
async def test_start_only_from_idle():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)
    assert await agent.start() is False
    assert agent.state == CallState.CONNECTED


@pytest.mark.asyncio
async def test_only_final_transcripts_are_recorded():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)

    voice.emit("message", {"type": "transcript", "transcriptType": "partial", "role": "user", "transcript": "5 +"})
    voice.emit("message", final("user", "5 + 5 = 10"))
    voice.emit("message", {"type": "function-call", "role": "assistant"})
    voice.emit("message", final("system", "ignored"))
    voice.emit("message", final("assistant", "Correct!"))

    assert agent.transcript == [
        TranscriptEntry(role="user", content="5 + 5 = 10"),
        TranscriptEntry(role="assistant", content="Correct!"),
    ]


@pytest.mark.asyncio
async def test_events_before_start_are_ignored():
    voice = FakeVoiceClient()
    agent = make_agent(voice)

    # nothing is subscribed yet, so call the handlers directly
    agent._on_message(final("user", "hello"))
    agent._on_call_start()
    agent._on_call_end()
    agent._on_error(RuntimeError("late"))

    assert agent.state == CallState.IDLE
    assert agent.transcript == []
    assert agent.error_message is None


@pytest.mark.asyncio
async def test_speaker_events_track_active_speaker():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)

    voice.emit("speaker-start", "assistant")
    assert agent.active_speaker == "assistant"
    voice.emit("speaker-end")
    assert agent.active_speaker == "none"


@pytest.mark.asyncio
async def test_call_end_saves_transcript_and_unsubscribes():
    voice = FakeVoiceClient()
    save = Recorder()
    agent = make_agent(voice, save)
    await connect(agent, voice)
    voice.emit("message", final("user", "I love numbers"))

    voice.emit("call-end")
    assert agent.state == CallState.ENDED
    assert voice.subscriber_count() == 0

    await agent.save_task
    assert save.calls == [("iv-1", [TranscriptEntry(role="user", content="I love numbers")])]


@pytest.mark.asyncio
async def test_call_end_without_transcript_does_not_save():
    voice = FakeVoiceClient()
    save = Recorder()
    agent = make_agent(voice, save)
    await connect(agent, voice)
    voice.emit("call-end")

    assert agent.save_task is None
    assert save.calls == []


@pytest.mark.asyncio
async def test_failed_save_keeps_state_ended():
    voice = FakeVoiceClient()
    agent = make_agent(voice, Recorder(fail=True))
    await connect(agent, voice)
    voice.emit("message", final("assistant", "Welcome"))
    voice.emit("call-end")

    await agent.save_task
    assert agent.state == CallState.ENDED
    assert agent.error_message == "Could not save the final transcript."


@pytest.mark.asyncio
async def test_error_event_moves_to_error():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)

    voice.emit("error", RuntimeError("microphone unavailable"))
    assert agent.state == CallState.ERROR
    assert agent.error_message == "microphone unavailable"
    assert voice.subscriber_count() == 0

    # events after the session ended reach no one
    voice.emit("message", final("user", "late"))
    assert agent.transcript == []


@pytest.mark.asyncio
async def test_start_failure_is_reported_as_error():
    voice = FakeVoiceClient(fail_on_start=RuntimeError("bad assistant"))
    agent = make_agent(voice)
    assert await agent.start() is True
    assert agent.state == CallState.ERROR
    assert agent.error_message == "bad assistant"


@pytest.mark.asyncio
async def test_stop_and_mute():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    assert await agent.stop() is False

    await connect(agent, voice)
    assert await agent.toggle_mute() is True
    assert voice.muted is True
    assert await agent.toggle_mute() is False
    assert voice.muted is False

    assert await agent.stop() is True
    assert voice.stopped


@pytest.mark.asyncio
async def test_mute_is_ignored_outside_a_call():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    assert await agent.toggle_mute() is False
    assert voice.muted is None


@pytest.mark.asyncio
async def test_close_releases_handlers():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await agent.start()
    assert voice.subscriber_count() == 6
    agent.close()
    assert voice.subscriber_count() == 0


@pytest.mark.asyncio
async def test_sessions_do_not_share_handlers():
    voice = FakeVoiceClient()
    first = make_agent(voice)
    await connect(first, voice)
    voice.emit("call-end")

    second = make_agent(voice)
    await connect(second, voice)
    voice.emit("message", final("user", "second session"))

    assert first.transcript == []
    assert [e.content for e in second.transcript] == ["second session"]


@pytest.mark.asyncio
async def test_null_transcript_text_is_recorded_as_empty():
    voice = FakeVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)
    voice.emit("message", {"type": "transcript", "transcriptType": "final", "role": "user", "transcript": None})
    assert agent.transcript == [TranscriptEntry(role="user", content="")]


@pytest.mark.asyncio
async def test_call_end_from_sdk_thread_still_saves():
    voice = FakeVoiceClient()
    save = Recorder()
    agent = make_agent(voice, save)
    await connect(agent, voice)
    voice.emit("message", final("user", "Fractions are parts of a whole"))

    errors = []

    def fire():
        try:
            voice.emit("call-end")
        except Exception as e:
            errors.append(e)

    worker = threading.Thread(target=fire)
    worker.start()
    worker.join()

    assert errors == []
    assert agent.state == CallState.ENDED
    for _ in range(10):
        if agent.save_task is not None:
            break
        await asyncio.sleep(0)
    await agent.save_task
    assert save.calls == [("iv-1", [TranscriptEntry(role="user", content="Fractions are parts of a whole")])]


class AsyncVoiceClient(FakeVoiceClient):
    async def start(self, assistant_id, options):
        self.started_with = (assistant_id, options)

    async def stop(self):
        self.stopped = True

    async def set_muted(self, muted):
        self.muted = muted


@pytest.mark.asyncio
async def test_async_voice_client_calls_are_awaited():
    voice = AsyncVoiceClient()
    agent = make_agent(voice)
    await connect(agent, voice)

    assert await agent.toggle_mute() is True
    assert voice.muted is True
    assert await agent.stop() is True
    assert voice.stopped
