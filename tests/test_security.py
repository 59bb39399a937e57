from datetime import timedelta

from fastapi.testclient import TestClient

from mothermath.core.security import create_access_token
from mothermath.main import app

client = TestClient(app)


def test_routes_require_a_token():
    assert client.get("/api/interviews").status_code == 401
    assert client.post("/analyze", json={"transcript": []}).status_code == 401


def test_invalid_token_is_rejected():
    res = client.get("/api/curriculum", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "teacher-1"}, expires_delta=timedelta(minutes=-5))
    res = client.get("/api/curriculum", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_token_without_subject_is_rejected():
    token = create_access_token({"name": "no subject"})
    res = client.get("/api/curriculum", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_valid_token_is_accepted():
    token = create_access_token({"sub": "teacher-1"})
    res = client.get("/api/curriculum", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200


def test_root_is_public():
    assert client.get("/").status_code == 200
