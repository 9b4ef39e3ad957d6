"""Tests for the HTTP surface."""

import pytest

from chatroom.ratelimit import MemoryRateLimiter
from chatroom.router.api.room import get_room_service


def test_end_to_end_scenario(client):
    assert client.post("/api/room/r1/join", json={"username": "alice"}).json() == {"success": True}
    assert client.post("/api/room/r1/send", json={"username": "alice", "message": "hello"}).json() == {
        "success": True
    }

    conflict = client.post("/api/room/r1/join", json={"username": "alice"})
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "NAME_CONFLICT"
    assert "error" in conflict.json()

    sync = client.get("/api/room/r1/messages")
    assert sync.status_code == 200
    body = sync.json()
    assert body["type"] == "sync"
    assert body["users"] == ["alice"]
    assert len(body["messages"]) == 1
    assert body["messages"][0]["username"] == "alice"
    assert body["messages"][0]["message"] == "hello"
    assert isinstance(body["messages"][0]["timestamp"], int)


def test_responses_are_not_cacheable(client):
    for response in (client.get("/api/room/r1/messages"), client.get("/nope")):
        assert "no-store" in response.headers["cache-control"]
        assert response.headers["pragma"] == "no-cache"


def test_messages_with_user_is_a_heartbeat(client):
    client.get("/api/room/r1/messages", params={"user": "carol"})
    assert client.get("/api/room/r1/messages").json()["users"] == ["carol"]
    assert client.post("/api/room/r1/join", json={"username": "carol"}).status_code == 409


def test_destroy(client):
    client.post("/api/room/r1/join", json={"username": "alice"})
    client.post("/api/room/r1/send", json={"username": "alice", "message": "hello"})

    response = client.post("/api/room/r1/destroy")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "message" in response.json()
    assert client.get("/api/room/r1/messages").json() == {"type": "sync", "messages": [], "users": []}
    assert client.post("/api/room/r1/destroy").status_code == 200


@pytest.mark.parametrize(
    "body",
    [{"message": "hi"}, {"username": "alice"}, {}],
)
def test_send_requires_username_and_message(client, body):
    response = client.post("/api/room/r1/send", json=body)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_malformed_body_is_invalid_input(client):
    response = client.post("/api/room/r1/join", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


@pytest.mark.parametrize(
    "method,path",
    [("GET", "/api/room/r1/send"), ("POST", "/api/room/r1/messages"), ("DELETE", "/api/room/r1/destroy")],
)
def test_wrong_method_is_405(client, method, path):
    response = client.request(method, path)
    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_SUPPORTED"


@pytest.mark.parametrize("path", ["/api/room", "/api/room/", "/api/room//messages"])
def test_missing_room_id(client, path):
    response = client.get(path)
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_ROOM_ID"


@pytest.mark.parametrize("path", ["/api/room/r1/unknown", "/api/room/r1", "/elsewhere"])
def test_unknown_paths_are_404(client, path):
    response = client.get(path)
    assert response.status_code == 404
    assert "error" in response.json()


def test_index_page(client):
    for path in ("/", "/index.html"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")


def test_health_reports_key_mode(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert isinstance(body["insecure_key_mode"], bool)


def test_rate_limit_rejects_before_dispatch(app, client, mocker, clock):
    app.state.rate_limiter = MemoryRateLimiter(window_ms=1000, clock=clock)
    spy = mocker.patch("chatroom.service.room_service.RoomService.sync")
    spy.return_value = {"type": "sync", "messages": [], "users": []}
    headers = {"CF-Connecting-IP": "9.9.9.9"}

    assert client.get("/api/room/r1/messages", headers=headers).status_code == 200
    rejected = client.get("/api/room/r1/messages", headers=headers)
    assert rejected.status_code == 429
    assert rejected.json()["code"] == "TOO_FAST"
    assert spy.call_count == 1

    # Another identity is unaffected; /health is exempt
    assert client.get("/api/room/r1/messages", headers={"CF-Connecting-IP": "8.8.8.8"}).status_code == 200
    assert client.get("/health", headers=headers).status_code == 200

    clock.advance(1000)
    assert client.get("/api/room/r1/messages", headers=headers).status_code == 200


def test_unidentified_clients_share_a_bucket(app, client, clock):
    app.state.rate_limiter = MemoryRateLimiter(window_ms=1000, clock=clock)
    assert client.get("/api/room/r1/messages").status_code == 200
    assert client.get("/api/room/r2/messages").status_code == 429


def test_unhandled_exception_is_500_json(app, client):
    class Exploding:
        def sync(self, room_id, username=None):
            raise RuntimeError("boom")

    app.dependency_overrides[get_room_service] = lambda: Exploding()
    response = client.get("/api/room/r1/messages")
    assert response.status_code == 500
    assert response.json() == {"error": "boom", "code": "UNHANDLED_EXCEPTION"}
