import json

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APIStatusError

from main import create_app

from conftest import FakeGateway


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(gateway, tmp_path):
    with TestClient(create_app(chat_gateway=gateway, data_dir=tmp_path)) as test_client:
        yield test_client


def _create_case(client, name="Pneumonia", prompt="55M cough+fever"):
    resp = client.post("/cases", json={"name": name, "prompt": prompt})
    assert resp.status_code == 201
    return resp.json()


def _run_interview(client, diagnosis="Community-acquired pneumonia"):
    started = client.post("/chats", json={"caseName": "Pneumonia"})
    assert started.status_code == 200
    chat_id = started.json()["chat_id"]

    sent = client.post(f"/chats/{chat_id}/messages", json={"text": "How long have you had the cough?"})
    assert sent.status_code == 200

    finished = client.post(f"/chats/{chat_id}/finish")
    assert finished.json()["needs_diagnosis"] is True

    committed = client.post(f"/chats/{chat_id}/diagnosis", json={"diagnosis": diagnosis})
    assert committed.status_code == 200
    return chat_id, committed.json()


def test_health_reports_status(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["openai_available"] is True
    assert "timestamp" in body


def test_storage_files_are_created_on_startup(client, tmp_path):
    assert json.loads((tmp_path / "sessions.json").read_text()) == []
    assert json.loads((tmp_path / "cases.json").read_text()) == []


def test_case_crud(client):
    created = _create_case(client)
    assert created["name"] == "Pneumonia"
    assert created["timestamp"]

    assert client.post("/cases", json={"name": "Pneumonia", "prompt": "dup"}).status_code == 409
    assert client.post("/cases", json={"name": "  ", "prompt": "x"}).status_code == 400

    renamed = client.put("/cases/Pneumonia", json={"name": "Lobar pneumonia", "prompt": "60F cough"})
    assert renamed.status_code == 200
    assert renamed.json()["timestamp"] == created["timestamp"]
    assert [c["name"] for c in client.get("/cases").json()] == ["Lobar pneumonia"]

    assert client.put("/cases/Pneumonia", json={"name": "X", "prompt": "y"}).status_code == 404
    assert client.delete("/cases/Lobar pneumonia").status_code == 200
    assert client.delete("/cases/Lobar pneumonia").status_code == 404
    assert client.get("/cases").json() == []


def test_full_interview_is_saved_with_three_messages(client, gateway):
    _create_case(client)

    chat_id, committed = _run_interview(client)

    assert committed["saved"] is True
    assert committed["state"] == "closed"
    assert committed["session"]["diagnosis"] == "Community-acquired pneumonia"

    sessions = client.get("/get-sessions").json()
    assert len(sessions) == 1
    assert [m["role"] for m in sessions[0]["messages"]] == ["assistant", "user", "assistant"]
    assert sessions[0]["caseName"] == "Pneumonia"
    assert sessions[0]["userName"] == "Anonymous"
    assert len(gateway.calls) == 2
    assert client.get(f"/chats/{chat_id}").status_code == 404


def test_chat_view_hides_system_and_kickoff_turns(client):
    _create_case(client)
    started = client.post("/chats", json={"caseName": "Pneumonia"}).json()

    assert started["reply"] == "reply 1"
    assert started["state"] == "open"
    view = client.get(f"/chats/{started['chat_id']}").json()
    assert view["messages"] == [{"role": "assistant", "content": "reply 1"}]


def test_closing_a_chat_saves_nothing(client):
    _create_case(client)
    chat_id = client.post("/chats", json={"caseName": "Pneumonia"}).json()["chat_id"]
    client.post(f"/chats/{chat_id}/messages", json={"text": "Any fever?"})

    closed = client.delete(f"/chats/{chat_id}")

    assert closed.json()["closed"] is True
    assert client.get("/get-sessions").json() == []


def test_chat_errors_map_to_status_codes(client):
    assert client.post("/chats", json={"caseName": "Unknown"}).status_code == 404
    assert client.get("/chats/nope").status_code == 404

    _create_case(client)
    chat_id = client.post("/chats", json={"caseName": "Pneumonia"}).json()["chat_id"]
    assert client.post(f"/chats/{chat_id}/diagnosis", json={"diagnosis": "x"}).status_code == 409
    assert client.post(f"/chats/{chat_id}/messages", json={"text": "   "}).status_code == 400


def test_learner_name_is_used_on_commit(client):
    assert client.get("/learner").json() == {"userName": "Anonymous"}
    assert client.put("/learner", json={"userName": "Dr. Rivera"}).json() == {"userName": "Dr. Rivera"}
    _create_case(client)

    _, committed = _run_interview(client)

    assert committed["session"]["userName"] == "Dr. Rivera"


def test_save_session_insert_merge_and_validation(client):
    payload = {
        "caseId": "Pneumonia",
        "caseName": "Pneumonia",
        "messages": [{"role": "assistant", "content": "Hello doctor!"}],
    }

    created = client.post("/save-session", json=payload)
    assert created.status_code == 201
    session_id = created.json()["session"]["id"]

    merged = client.post("/save-session", json={"id": session_id, "diagnosis": "Asthma"})
    assert merged.status_code == 200
    assert merged.json()["created"] is False
    assert merged.json()["session"]["messages"] == payload["messages"]

    assert client.post("/save-session", json={"caseName": "No id or messages"}).status_code == 400
    assert len(client.get("/get-sessions").json()) == 1


def test_delete_endpoints(client):
    payload = {"caseId": "c", "caseName": "C", "messages": [{"role": "user", "content": "hi"}]}
    first = client.post("/save-session", json=payload).json()["session"]["id"]
    client.post("/save-session", json=payload)

    assert client.delete("/sessions/unknown").status_code == 404
    assert client.delete(f"/sessions/{first}").json()["success"] is True
    assert client.delete("/sessions").json()["count"] == 1
    assert client.get("/get-sessions").json() == []


def test_review_endpoint_calls_model_once(client, gateway):
    session_id = client.post(
        "/save-session",
        json={
            "caseId": "Pneumonia",
            "caseName": "Pneumonia",
            "casePrompt": "55M cough+fever",
            "messages": [{"role": "assistant", "content": "Hello doctor!"}],
        },
    ).json()["session"]["id"]
    gateway.replies = ["Ask about onset earlier."]

    first = client.post(f"/sessions/{session_id}/review")
    second = client.post(f"/sessions/{session_id}/review")

    assert first.status_code == second.status_code == 200
    assert first.json()["review"] == second.json()["review"] == "Ask about onset earlier."
    assert len(gateway.calls) == 1
    assert client.get("/get-sessions").json()[0]["review"] == "Ask about onset earlier."
    assert client.post("/sessions/unknown/review").status_code == 404


def test_review_gateway_failure_returns_502(client, gateway):
    session_id = client.post(
        "/save-session",
        json={"caseId": "c", "caseName": "C", "messages": [{"role": "user", "content": "hi"}]},
    ).json()["session"]["id"]
    gateway.failures = 1

    assert client.post(f"/sessions/{session_id}/review").status_code == 502
    assert "review" not in client.get("/get-sessions").json()[0]


def test_get_sessions_search(client):
    for name, user in (("Pneumonia", "Dana"), ("Migraine", "Lee")):
        client.post(
            "/save-session",
            json={
                "caseId": name,
                "caseName": name,
                "userName": user,
                "messages": [{"role": "assistant", "content": "Hello doctor!"}],
            },
        )

    assert [s["caseName"] for s in client.get("/get-sessions", params={"q": "migr"}).json()] == ["Migraine"]
    assert [s["userName"] for s in client.get("/get-sessions", params={"q": "DANA"}).json()] == ["Dana"]
    assert len(client.get("/get-sessions", params={"q": "hello"}).json()) == 2


def test_openai_proxy_forwards_request(client, gateway):
    resp = client.post(
        "/api/openai",
        json={"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}], "temperature": 0.1},
    )

    assert resp.status_code == 200
    assert resp.json()["choices"][0]["message"]["content"] == "proxied"
    assert gateway.forwarded == [
        {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}], "temperature": 0.1}
    ]


@pytest.mark.parametrize(
    "body",
    [
        {"messages": [{"role": "user", "content": "hi"}]},
        {"model": "", "messages": []},
        {"model": "gpt-4o-mini", "messages": "hi"},
    ],
)
def test_openai_proxy_rejects_malformed_body(client, gateway, body):
    resp = client.post("/api/openai", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request. Required fields: model, messages (array)"}
    assert gateway.forwarded == []


def test_openai_proxy_relays_upstream_status(tmp_path):
    class RateLimitedGateway(FakeGateway):
        async def forward(self, *, model, messages, temperature=None):
            request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
            body = {"error": {"message": "Rate limit reached", "type": "rate_limit_exceeded"}}
            response = httpx.Response(429, request=request, json=body)
            raise APIStatusError("Rate limit reached", response=response, body=body)

    with TestClient(create_app(chat_gateway=RateLimitedGateway(), data_dir=tmp_path)) as client:
        resp = client.post("/api/openai", json={"model": "gpt-4o-mini", "messages": []})

    assert resp.status_code == 429
    assert resp.json()["error"]["type"] == "rate_limit_exceeded"
