import base64


# -------------------------
# Chatbot
# -------------------------
def test_chat_reply(api_client, gateway):
    gateway.reply("  Use bottle tops to model addition.  ")
    res = api_client.post(
        "/api/chatbot/messages",
        json={
            "message": "How do I teach addition?",
            "grade": "2",
            "history": [
                {"id": "m1", "role": "user", "content": "Hello"},
                {"id": "m2", "role": "assistant", "content": "Hello! How can I help?"},
            ],
        },
    )
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Use bottle tops to model addition.", "error": None}

    sent = gateway.last_request
    assert sent["model"] == "google/gemini-2.5-flash"
    assert [m["role"] for m in sent["messages"]] == ["system", "user", "assistant", "user"]


def test_chat_without_grade(api_client, gateway):
    res = api_client.post("/api/chatbot/messages", json={"message": "Hi"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Grade not provided"
    assert gateway.requests == []


def test_chat_gateway_failure_is_an_apology(api_client, gateway):
    gateway.fail(500, "boom")
    res = api_client.post("/api/chatbot/messages", json={"message": "Hi", "grade": "1"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is False
    assert body["message"].startswith("I apologize")


def test_empty_message_is_rejected(api_client):
    assert api_client.post("/api/chatbot/messages", json={"message": "", "grade": "1"}).status_code == 422


def test_conversation_starters(api_client):
    teacher = api_client.get("/api/chatbot/starters", params={"role": "Teacher"}).json()["starters"]
    assert teacher[0] == "Help me plan a lesson on shapes using local objects"

    general = api_client.get("/api/chatbot/starters").json()["starters"]
    suggestions = api_client.get("/api/chatbot/suggestions").json()["questions"]
    assert general == suggestions
    assert len(suggestions) == 8


# -------------------------
# Student work
# -------------------------
def test_student_work_analysis(api_client, gateway):
    gateway.reply("The learner forgot to carry the 1.")
    image = base64.b64encode(b"\x89PNG fake image bytes").decode()
    res = api_client.post("/api/student-work/analyze", json={"image": image})
    assert res.status_code == 200
    assert res.json() == {"analysis": "The learner forgot to carry the 1."}

    content = gateway.last_request["messages"][1]["content"]
    assert content[0]["text"] == "Please analyze this student's work."
    assert content[1]["image_url"]["url"] == f"data:image/jpeg;base64,{image}"


def test_student_work_keeps_data_urls(api_client, gateway):
    url = "data:image/png;base64,AAAA"
    api_client.post("/api/student-work/analyze", json={"image": url, "message": "Check the fractions"})
    content = gateway.last_request["messages"][1]["content"]
    assert content[0]["text"] == "Check the fractions"
    assert content[1]["image_url"]["url"] == url


def test_student_work_rejects_unreadable_image(api_client, gateway):
    res = api_client.post("/api/student-work/analyze", json={"image": "not an image!"})
    assert res.status_code == 400
    assert gateway.requests == []


# -------------------------
# Curriculum
# -------------------------
def test_curriculum(api_client):
    res = api_client.get("/api/curriculum")
    assert res.status_code == 200
    body = res.json()
    assert body["region"] == "Cameroon"
    assert body["levels"][0] == "Primary 1"
    assert body["lessonSections"][0]["title"] == "INTRODUCTION"
    assert body["interview"]["timeFrames"] == [10, 15, 20, 30]


def test_root(api_client):
    assert api_client.get("/").json() == {"message": "Mother of Math API is running"}
