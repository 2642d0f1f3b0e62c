import pytest
from starlette.websockets import WebSocketDisconnect

from raqm.core.dependencies import WS_FORBIDDEN, WS_NOT_FOUND
from raqm.modules.chats.service import ChatService, other_participant_id


def _start(client, user, other):
    return client.post("/api/v1/chats", headers=user.headers, json={"user_id": other.id})


def _message(supabase, chat_id, user_id, content, **extra):
    return supabase.table("messages").insert({
        "chat_id": chat_id, "user_id": user_id, "content": content, **extra
    }).execute().data[0]


def test_other_participant_id():
    assert other_participant_id({"participant_ids": ["a", "b"]}, "a") == "b"
    assert other_participant_id({"participant_ids": ["a"]}, "a") is None


def test_start_chat_creates_once(client, supabase, alice, bob):
    first = _start(client, alice, bob)
    assert first.status_code == 200
    assert first.json()["created"] is True
    assert first.json()["other_participant"]["plate_number"] == "DXB 777"
    assert len(supabase.tables["chat_participants"]) == 2

    again = _start(client, bob, alice)
    assert again.json()["created"] is False
    assert again.json()["id"] == first.json()["id"]
    assert again.json()["other_participant"]["id"] == alice.id
    assert len(supabase.tables["chats"]) == 1


def test_start_chat_validation(client, alice):
    assert client.post("/api/v1/chats", headers=alice.headers, json={"user_id": alice.id}).status_code == 400
    assert client.post("/api/v1/chats", headers=alice.headers, json={"user_id": "ghost"}).status_code == 404


def test_send_and_list_messages(client, supabase, alice, bob):
    chat_id = _start(client, alice, bob).json()["id"]

    sent = client.post(
        f"/api/v1/chats/{chat_id}/messages",
        headers=alice.headers,
        json={"content": " Nice car! ", "client_id": "temp-1"},
    )
    assert sent.status_code == 201
    assert sent.json()["content"] == "Nice car!"
    assert sent.json()["client_id"] == "temp-1"
    assert sent.json()["profile"]["id"] == alice.id
    assert supabase.tables["chats"][0]["unread_count"] == 1

    client.post(f"/api/v1/chats/{chat_id}/messages", headers=alice.headers, json={"content": "Where was this?"})

    history = client.get(f"/api/v1/chats/{chat_id}/messages", headers=bob.headers).json()
    assert [m["content"] for m in history] == ["Nice car!", "Where was this?"]
    assert all(m["is_read"] for m in supabase.tables["messages"])
    assert supabase.tables["chats"][0]["unread_count"] == 0


def test_reading_own_messages_does_not_mark_them_read(client, supabase, alice, bob):
    chat_id = _start(client, alice, bob).json()["id"]
    client.post(f"/api/v1/chats/{chat_id}/messages", headers=alice.headers, json={"content": "hi"})
    client.get(f"/api/v1/chats/{chat_id}/messages", headers=alice.headers)
    assert supabase.tables["messages"][0]["is_read"] is False


def test_empty_message_rejected(client, alice, bob):
    chat_id = _start(client, alice, bob).json()["id"]
    response = client.post(f"/api/v1/chats/{chat_id}/messages", headers=alice.headers, json={"content": "  "})
    assert response.status_code == 400


def test_non_participants_are_forbidden(client, alice, bob, carol):
    chat_id = _start(client, alice, bob).json()["id"]
    assert client.get(f"/api/v1/chats/{chat_id}", headers=carol.headers).status_code == 403
    assert client.get(f"/api/v1/chats/{chat_id}/messages", headers=carol.headers).status_code == 403
    response = client.post(f"/api/v1/chats/{chat_id}/messages", headers=carol.headers, json={"content": "hey"})
    assert response.status_code == 403
    assert client.get("/api/v1/chats/missing", headers=alice.headers).status_code == 404


def test_get_chat(client, alice, bob):
    chat_id = _start(client, alice, bob).json()["id"]
    payload = client.get(f"/api/v1/chats/{chat_id}", headers=bob.headers).json()
    assert payload["other_participant"]["full_name"] == "Alice Driver"


def test_list_chats_with_last_message_and_unread(client, supabase, alice, bob, carol):
    with_bob = _start(client, alice, bob).json()["id"]
    with_carol = _start(client, alice, carol).json()["id"]
    _message(supabase, with_bob, bob.id, "one")
    _message(supabase, with_bob, bob.id, "two")
    _message(supabase, with_bob, alice.id, "mine")
    client.post(f"/api/v1/chats/{with_carol}/messages", headers=carol.headers, json={"content": "latest"})

    chats = client.get("/api/v1/chats", headers=alice.headers).json()
    assert [c["id"] for c in chats] == [with_carol, with_bob]
    by_id = {c["id"]: c for c in chats}
    assert by_id[with_bob]["unread_count"] == 2
    assert by_id[with_bob]["last_message"]["content"] == "mine"
    assert by_id[with_carol]["unread_count"] == 1
    assert by_id[with_carol]["other_participant"]["plate_number"] == "SHJ 4040"

    assert client.get("/api/v1/chats", headers=bob.headers).json()[0]["unread_count"] == 1


def test_chat_socket_streams_messages_and_marks_them_read(client, supabase, hub, alice, bob):
    chat_id = _start(client, alice, bob).json()["id"]
    record = _message(supabase, chat_id, alice.id, "live")
    hub.records[f"chat-{chat_id}"] = [record]

    with client.websocket_connect(f"/api/v1/chats/{chat_id}/ws?token={bob.token}") as ws:
        event = ws.receive_json()
        assert event["type"] == "message"
        assert event["message"]["content"] == "live"
        assert event["message"]["is_read"] is True
        assert event["message"]["profile"]["id"] == alice.id

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

    assert supabase.tables["messages"][0]["is_read"] is True
    assert hub.subscriptions == [(f"chat-{chat_id}", "messages", f"chat_id=eq.{chat_id}")]


def test_chat_socket_rejects_outsiders(client, alice, bob, carol):
    chat_id = _start(client, alice, bob).json()["id"]
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/v1/chats/{chat_id}/ws?token={carol.token}") as ws:
            ws.receive_json()
    assert exc.value.code == WS_FORBIDDEN

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/v1/chats/missing/ws?token={carol.token}") as ws:
            ws.receive_json()
    assert exc.value.code == WS_NOT_FOUND


def test_inbox_socket_only_forwards_own_chats(client, supabase, hub, alice, bob, carol):
    with_bob = _start(client, alice, bob).json()["id"]
    bob_carol = _start(client, bob, carol).json()["id"]
    hub.records["public-messages"] = [
        _message(supabase, bob_carol, carol.id, "not for alice"),
        _message(supabase, with_bob, bob.id, "for alice"),
    ]

    with client.websocket_connect(f"/api/v1/chats/ws?token={alice.token}") as ws:
        event = ws.receive_json()
    assert event["type"] == "chat_update"
    assert event["chat_id"] == with_bob
    assert event["last_message"]["content"] == "for alice"
    assert event["unread_increment"] == 1


def test_inbox_event_picks_up_chats_started_later(supabase, alice, bob):
    service = ChatService(supabase)
    chat_ids = service.user_chat_ids(alice.id)
    assert chat_ids == set()

    chat = service.start_chat(bob.id, alice.id)
    record = _message(supabase, chat.id, alice.id, "hello")
    event = service.inbox_event(record, alice.id, chat_ids, set())
    assert event["unread_increment"] == 0
    assert chat_ids == {chat.id}


def test_inbox_event_looks_up_foreign_chats_once(supabase, alice, bob, carol):
    service = ChatService(supabase)
    bob_carol = service.start_chat(bob.id, carol.id)
    chat_ids, foreign_ids = service.user_chat_ids(alice.id), set()

    before = len(supabase.calls)
    for n in range(50):
        record = _message(supabase, bob_carol.id, carol.id, f"msg {n}")
        assert service.inbox_event(record, alice.id, chat_ids, foreign_ids) is None

    lookups = [call for call in supabase.calls[before:] if call == ("chats", "select")]
    assert len(lookups) == 1
    assert foreign_ids == {bob_carol.id}
