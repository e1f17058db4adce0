import pytest

from lawhelp.services.connections import manager


@pytest.fixture
def session_for(client):
    def _create(headers, **body):
        return client.post("/api/chat/sessions", headers=headers, json=body).json()["data"]

    return _create


def authenticate(ws, headers):
    token = headers["Authorization"].split()[1]
    ws.send_json({"type": "auth", "token": token})
    return ws.receive_json()


def test_ping_pong_without_auth(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_invalid_frames(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}
        ws.send_json({"type": "dance"})
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}


def test_auth_with_bad_token(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "auth", "token": "garbage"})
        assert ws.receive_json()["type"] == "auth_error"


def test_chat_requires_auth(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "chat_message", "session_id": 1, "content": "Hello"})
        assert ws.receive_json() == {"type": "error", "message": "Authentication required"}


def test_chat_relay_persists_and_returns_both_rows(client, storage, session_for, make_user):
    user_id, headers = make_user()
    session = session_for(headers)
    question = "How long does a land title application take in Yaoundé?"

    with client.websocket_connect("/ws") as ws:
        assert authenticate(ws, headers)["type"] == "auth_success"
        assert manager.is_connected(user_id)

        ws.send_json({"type": "chat_message", "session_id": session["id"], "content": question})
        sent = ws.receive_json()
        answer = ws.receive_json()

    assert sent["type"] == "message_sent"
    assert sent["message"]["role"] == "user"
    assert sent["message"]["content"] == question
    assert answer["type"] == "ai_response"
    assert answer["message"]["role"] == "assistant"
    assert answer["message"]["category"] == "Family Law"

    assert [m.role for m in storage.get_chat_messages(session["id"])] == ["user", "assistant"]
    assert storage.get_chat_session(session["id"]).title == question[:50] + "..."


def test_chat_relay_ai_failure(client, fake_ai, session_for, make_user):
    _, headers = make_user()
    session = session_for(headers)
    fake_ai.fail = True

    with client.websocket_connect("/ws") as ws:
        authenticate(ws, headers)
        ws.send_json({"type": "chat_message", "session_id": session["id"], "content": "Hello"})
        assert ws.receive_json()["type"] == "message_sent"
        assert ws.receive_json() == {"type": "error", "message": "Failed to get AI response. Please try again."}


def test_chat_relay_rejects_foreign_session(client, storage, session_for, make_user):
    _, amina = make_user()
    _, paul = make_user(email="paul@example.cm", name="Paul Mbarga")
    session = session_for(amina)

    with client.websocket_connect("/ws") as ws:
        authenticate(ws, paul)
        ws.send_json({"type": "chat_message", "session_id": session["id"], "content": "Let me in"})
        assert ws.receive_json() == {"type": "error", "message": "Access denied"}
        ws.send_json({"type": "chat_message", "session_id": 999, "content": "Hello"})
        assert ws.receive_json() == {"type": "error", "message": "Chat session not found"}

    assert storage.get_chat_messages(session["id"]) == []
