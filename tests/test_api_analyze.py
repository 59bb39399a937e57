import httpx

from mothermath.api.deps import get_gateway_client
from mothermath.core.config import GatewaySettings
from mothermath.main import app
from mothermath.utils.ai_client import GatewayClient

TRANSCRIPT = [
    {"role": "user", "content": "5+5=10"},
    {"role": "assistant", "content": "Correct!"},
]


def test_analyze_returns_feedback(api_client, gateway):
    gateway.reply("Great arithmetic. Keep explaining your steps.")
    res = api_client.post("/analyze", json={"transcript": TRANSCRIPT})
    assert res.status_code == 200
    assert res.json() == {"feedback": "Great arithmetic. Keep explaining your steps."}
    assert "5+5=10" in gateway.last_request["messages"][1]["content"]


def test_analyze_rejects_empty_transcript(api_client, gateway):
    assert api_client.post("/analyze", json={"transcript": []}).status_code == 400
    res = api_client.post("/analyze", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "A valid transcript is required."}
    assert gateway.requests == []


def test_analyze_without_api_key(api_client, gateway):
    unconfigured = GatewayClient(GatewaySettings(api_key=""), transport=httpx.MockTransport(gateway.handler))
    app.dependency_overrides[get_gateway_client] = lambda: unconfigured

    res = api_client.post("/analyze", json={"transcript": TRANSCRIPT})
    assert res.status_code == 500
    assert res.json() == {"error": "API key not configured."}
    assert gateway.requests == []


def test_analyze_gateway_failure(api_client, gateway):
    gateway.fail(503, "model overloaded")
    res = api_client.post("/analyze", json={"transcript": TRANSCRIPT})
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to get feedback from AI."}


def test_analyze_rejects_transcript_that_is_not_a_list(api_client, gateway):
    for bad in ("5+5=10", {"role": "user", "content": "hi"}, [{"speaker": "me"}]):
        res = api_client.post("/analyze", json={"transcript": bad})
        assert res.status_code == 400
        assert res.json() == {"error": "A valid transcript is required."}
    assert gateway.requests == []
