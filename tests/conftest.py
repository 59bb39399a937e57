"""Shared fixtures: a scripted LLM gateway, an in-memory database and an API client."""

import json
from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mothermath.api.deps import get_gateway_client, get_inflight_guard
from mothermath.core.config import GatewaySettings, VoiceSettings, get_voice_settings
from mothermath.core.database import Base, get_db
from mothermath.core.security import get_current_user
from mothermath.main import app
from mothermath.models import records  # noqa: F401
from mothermath.utils.ai_client import GatewayClient
from mothermath.utils.inflight import InFlightGuard

TEST_USER = "teacher-1"


def completion(content: str) -> Dict[str, Any]:
    """A chat-completion response body carrying `content`."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class ScriptedGateway:
    """
    Stands in for the LLM gateway behind httpx.MockTransport.

    Queue replies with `reply(...)` / `fail(...)`; every request body is kept in `requests`.
    When the queue is empty the gateway answers with `default`.
    """

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []
        self._queue: List[httpx.Response] = []
        self.default = httpx.Response(200, json=completion("OK"))

    def reply(self, content: str) -> "ScriptedGateway":
        self._queue.append(httpx.Response(200, json=completion(content)))
        return self

    def reply_json(self, payload: Any) -> "ScriptedGateway":
        return self.reply(json.dumps(payload))

    def fail(self, status: int, message: str = "Upstream failure") -> "ScriptedGateway":
        self._queue.append(httpx.Response(status, json={"error": {"message": message}}))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        self.headers.append(request.headers)
        if self._queue:
            return self._queue.pop(0)
        return self.default

    @property
    def last_request(self) -> Dict[str, Any]:
        return self.requests[-1]


@pytest.fixture
def gateway_settings() -> GatewaySettings:
    return GatewaySettings(api_key="sk-or-v1-test-key", base_url="https://gateway.test/api/v1")


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def gateway_client(gateway_settings, gateway) -> GatewayClient:
    return GatewayClient(gateway_settings, transport=httpx.MockTransport(gateway.handler))


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def voice_settings() -> VoiceSettings:
    return VoiceSettings(api_key="voice-key", assistant_id="assistant-123")


@pytest.fixture
def api_client(gateway_client, db_session, voice_settings):
    """TestClient with auth, database, gateway and voice settings replaced by test doubles."""
    guard = InFlightGuard()

    def override_db():
        yield db_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    app.dependency_overrides[get_inflight_guard] = lambda: guard
    app.dependency_overrides[get_voice_settings] = lambda: voice_settings

    # Not used as a context manager, so the startup hook never touches the real database
    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lesson_plan_payload() -> Dict[str, Any]:
    return {
        "title": "Adding Numbers at the Market",
        "gradeLevel": "Primary 2",
        "subject": "Mathematics",
        "topic": "Addition",
        "lessonObjectives": ["Add two-digit numbers", "Explain carrying"],
        "materials": ["Bottle tops", "Chalkboard"],
        "sections": [
            {
                "title": "INTRODUCTION",
                "teacherActivities": ["Greet learners", "Ask about market trips", "Show bottle tops"],
                "learnerActivities": ["Respond"],
            },
            {
                "title": "PRESENTATION",
                "teacherActivities": ["Model 23 + 15"],
                "learnerActivities": ["Count along", "Copy the example"],
            },
        ],
        "evaluation": {"description": "Five addition problems."},
        "assignment": {"description": "Add the prices of three items."},
    }
