"""
Chat API tests
Dependencies are overridden with the in-memory store and a scripted generator.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.v1.dependencies import get_generator, get_session_store
from app.core.config import settings
from app.main import app
from services.exceptions import TextGenerationError, TextGenerationTimeoutError

from conftest import make_response

BASE = "/api/v1/chat"
SP = {"origin_name": "São Paulo", "origin_iata": "GRU"}
OWNER = {"userId": "user-1"}


@pytest.fixture
def client(context_manager, generator):
    app.dependency_overrides[get_session_store] = lambda: context_manager
    app.dependency_overrides[get_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


def start(client, generator):
    generator.queue(make_response(stage="collecting_budget", **SP))
    response = client.post(f"{BASE}/turn", json={"userId": "user-1", "message": "São Paulo"})
    assert response.status_code == 200
    return response.json()


def test_turn_creates_session(client, generator):
    body = start(client, generator)

    assert body["sessionId"]
    assert body["stage"] == "collecting_budget"
    assert body["assistantMessage"] == "Qual é o seu orçamento?"
    assert body["quickReplyOptions"] is None
    assert body["collectedData"]["origin_iata"] == "GRU"


def test_turn_returns_quick_replies(client, generator):
    session_id = start(client, generator)["sessionId"]

    generator.queue(make_response(stage="collecting_passengers", next_key="passengers", budget_in_brl=3000))
    response = client.post(
        f"{BASE}/turn",
        json={"sessionId": session_id, "userId": "user-1", "message": "3000"}
    )

    assert response.status_code == 200
    options = response.json()["quickReplyOptions"]
    assert options[1] == {"label": "2 adultos", "value": "2"}


def test_blank_message_rejected(client):
    response = client.post(f"{BASE}/turn", json={"userId": "user-1", "message": "   "})
    assert response.status_code == 422


def test_generator_outage_maps_to_503(client, generator):
    generator.queue(TextGenerationError("down"))
    response = client.post(f"{BASE}/turn", json={"userId": "user-1", "message": "Olá"})

    assert response.status_code == 503
    assert "down" not in response.json()["detail"]


def test_generator_timeout_maps_to_503(client, generator):
    generator.queue(TextGenerationTimeoutError("slow"))
    response = client.post(f"{BASE}/turn", json={"userId": "user-1", "message": "Olá"})
    assert response.status_code == 503


def test_foreign_session_is_404(client, generator):
    session_id = start(client, generator)["sessionId"]
    response = client.post(
        f"{BASE}/turn",
        json={"sessionId": session_id, "userId": "someone-else", "message": "oi"}
    )
    assert response.status_code == 404


def test_session_endpoints(client, generator):
    session_id = start(client, generator)["sessionId"]

    session = client.get(f"{BASE}/sessions/{session_id}", params=OWNER).json()
    assert session["sessionId"] == session_id
    assert len(session["messages"]) == 2
    assert session["messages"][1]["jsonData"]["conversation_stage"] == "collecting_budget"

    collected = client.get(f"{BASE}/sessions/{session_id}/collected-data", params=OWNER).json()
    assert collected["completion"]["total"] == 8

    search = client.get(f"{BASE}/sessions/{session_id}/flight-search-params", params=OWNER).json()
    assert search["ready"] is False

    pricing = client.get(f"{BASE}/sessions/{session_id}/pricing", params=OWNER).json()
    assert pricing["ready"] is False

    listing = client.get(f"{BASE}/sessions/user/user-1").json()
    assert listing["total"] == 1
    assert listing["sessions"][0]["sessionId"] == session_id
    assert listing["sessions"][0]["summary"] == "São Paulo"

    assert client.delete(f"{BASE}/sessions/{session_id}", params=OWNER).json()["deleted"] is True
    assert client.get(f"{BASE}/sessions/{session_id}", params=OWNER).status_code == 404


def test_unknown_session_is_404(client):
    assert client.get(f"{BASE}/sessions/missing/pricing", params=OWNER).status_code == 404


@pytest.mark.parametrize("suffix", ["", "/collected-data", "/flight-search-params", "/pricing"])
def test_foreign_user_cannot_read_session(client, generator, suffix):
    session_id = start(client, generator)["sessionId"]

    response = client.get(f"{BASE}/sessions/{session_id}{suffix}", params={"userId": "someone-else"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Session not found"


def test_foreign_user_cannot_delete_session(client, generator):
    session_id = start(client, generator)["sessionId"]

    response = client.delete(f"{BASE}/sessions/{session_id}", params={"userId": "someone-else"})
    assert response.status_code == 404
    assert client.get(f"{BASE}/sessions/{session_id}", params=OWNER).status_code == 200


def test_session_endpoints_require_user(client, generator):
    session_id = start(client, generator)["sessionId"]
    assert client.get(f"{BASE}/sessions/{session_id}/pricing").status_code == 422


def test_escaped_emoji_reply(client, generator):
    generator.queue(make_response(stage="collecting_origin", next_key="origin", message="Oi \\ud83d\\ude00 de onde você sai?"))
    response = client.post(f"{BASE}/turn", json={"userId": "user-1", "message": "Olá"})

    assert response.status_code == 200
    assert response.json()["assistantMessage"] == "Oi \U0001F600 de onde você sai?"


def test_health(client, monkeypatch):
    monkeypatch.setattr(settings, "USE_REDIS", False)
    response = client.get(f"{BASE}/health")
    assert response.status_code == 200
    assert response.json()["service"] == "chat"
