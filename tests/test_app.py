from datetime import datetime

import pytest
from fastapi import WebSocketDisconnect

from constants import SERVICE_BANNER
from event_names import AUTH_ERROR, CHAT_MESSAGE, CONNECTED, JOIN_ROOM, USER_JOINED, USER_LEFT, USERS_IN_ROOM

from conftest import VALID_TOKEN


def join_frame(room_id, name, token=None):
    data = {"roomId": room_id, "name": name}
    if token is not None:
        data["token"] = token
    return {"event": JOIN_ROOM, "data": data}


def open_session(ws):
    frame = ws.receive_json()
    assert frame["event"] == CONNECTED
    return frame["data"]["id"]


def test_root_is_plaintext(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == SERVICE_BANNER
    assert response.headers["content-type"].startswith("text/plain")


def test_health_reports_room_count(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["rooms"] == 0
    assert body["timestamp"].endswith("Z")
    stamp = datetime.fromisoformat(body["timestamp"][:-1] + "+00:00")
    assert stamp.utcoffset().total_seconds() == 0


def test_cors_allows_known_frontend(client):
    response = client.options(
        "/health",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_two_peers_meet_and_part(client):
    with client.websocket_connect("/ws") as alice:
        alice_id = open_session(alice)
        alice.send_json(join_frame("math101", "Alice"))
        assert alice.receive_json() == {"event": USERS_IN_ROOM, "data": []}

        with client.websocket_connect("/ws") as bob:
            bob_id = open_session(bob)
            bob.send_json(join_frame("math101", "Bob"))
            assert bob.receive_json() == {"event": USERS_IN_ROOM, "data": [{"id": alice_id, "name": "Alice"}]}
            assert alice.receive_json() == {"event": USER_JOINED, "data": {"id": bob_id, "name": "Bob"}}

            alice.send_json({"event": CHAT_MESSAGE, "data": {"roomId": "math101", "text": "hello"}})
            assert bob.receive_json() == {"event": CHAT_MESSAGE, "data": {"roomId": "math101", "text": "hello"}}

        assert alice.receive_json() == {"event": USER_LEFT, "data": {"id": bob_id, "name": "Bob"}}
        assert client.get("/health").json()["rooms"] == 1

    assert client.get("/health").json()["rooms"] == 0


def test_valid_token_is_admitted(client):
    with client.websocket_connect("/ws") as alice:
        open_session(alice)
        alice.send_json(join_frame("math101", "Alice", token=VALID_TOKEN))

        assert alice.receive_json() == {"event": USERS_IN_ROOM, "data": []}
        assert client.get("/health").json()["rooms"] == 1


def test_invalid_token_gets_auth_error_then_disconnect(client, registry):
    with client.websocket_connect("/ws") as mallory:
        open_session(mallory)
        mallory.send_json(join_frame("math101", "Mallory", token="forged"))

        assert mallory.receive_json() == {"event": AUTH_ERROR, "data": {"message": "Invalid or expired token"}}
        with pytest.raises(WebSocketDisconnect) as excinfo:
            mallory.receive_json()
        assert excinfo.value.code == 1008

    assert registry.room_count() == 0


def test_malformed_frames_are_ignored(client):
    with client.websocket_connect("/ws") as alice:
        open_session(alice)
        alice.send_text("not json")
        alice.send_json({"data": {"roomId": "math101"}})
        alice.send_json({"event": JOIN_ROOM, "data": {"name": "no room"}})
        alice.send_text("x" * (70 * 1024))
        alice.send_bytes(b"\x00\x01")

        alice.send_json(join_frame("math101", "Alice"))

        assert alice.receive_json() == {"event": USERS_IN_ROOM, "data": []}


def test_unknown_origin_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws", headers={"Origin": "https://evil.example"}):
            pass

    assert excinfo.value.code == 1008


def test_known_origin_is_accepted(client):
    with client.websocket_connect("/ws", headers={"Origin": "https://studyhub.live"}) as ws:
        assert ws.receive_json()["event"] == CONNECTED
