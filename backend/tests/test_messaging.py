from __future__ import annotations

import uuid

import httpx

from app.db.models import Lead, Message, MessageThread, Notification, ThreadRead


def _thread(db_session, *users, case_id=None) -> MessageThread:
    thread = MessageThread(
        subject="Direct Message",
        participant_ids=sorted(str(u.id) for u in users),
        case_id=case_id,
    )
    db_session.add(thread)
    db_session.commit()
    return thread


# ============================================================================
# Connect
# ============================================================================

def test_connect_creates_lead_thread_message_and_notification(client, db_session, chamber_setup, make_user, login_as, broadcast_mock):
    visitor = make_user(role="client", email="visitor@example.test", full_name="Vinod V")
    lawyer = chamber_setup["lawyer"]
    chamber = chamber_setup["chamber"]
    login_as(visitor)

    response = client.post(
        "/api/connect",
        json={"lawyerId": str(lawyer.id), "chamberId": str(chamber.id), "message": "Need help with a tenancy dispute"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True

    thread = db_session.query(MessageThread).one()
    assert str(thread.id) == body["threadId"]
    assert thread.participant_ids == sorted([str(visitor.id), str(lawyer.id)])
    assert thread.case_id is None

    lead = db_session.query(Lead).one()
    assert lead.name == "Vinod V"
    assert lead.source == "Direct Message"
    assert lead.status == "new"
    assert lead.assigned_to == lawyer.id
    assert lead.notes == "Initial message: Need help with a tenancy dispute"

    assert db_session.query(Message).count() == 1
    notification = db_session.query(Notification).one()
    assert notification.user_id == lawyer.id
    assert notification.title == "New Connection Request"
    broadcast_mock.assert_called_once()
    assert broadcast_mock.call_args.args[0] == f"user-{lawyer.id}"


def test_connect_reuses_thread_and_reactivates_lost_lead(client, db_session, chamber_setup, make_user, login_as):
    visitor = make_user(role="client", email="visitor@example.test")
    lawyer = chamber_setup["lawyer"]
    chamber = chamber_setup["chamber"]
    login_as(visitor)
    payload = {"lawyerId": str(lawyer.id), "chamberId": str(chamber.id), "message": "Hello"}

    first = client.post("/api/connect", json=payload).json()
    lead = db_session.query(Lead).one()
    lead.status = "lost"
    db_session.commit()

    second = client.post("/api/connect", json={**payload, "message": "x" * 600}).json()

    assert first["threadId"] == second["threadId"]
    assert db_session.query(MessageThread).count() == 1
    assert db_session.query(Message).count() == 2
    db_session.refresh(lead)
    assert lead.status == "new"
    assert lead.notes == "Lead reached out again: " + "x" * 500
    assert db_session.query(Lead).count() == 1


def test_connect_leaves_open_lead_alone(client, db_session, chamber_setup, make_user, login_as):
    visitor = make_user(role="client", email="visitor@example.test")
    chamber = chamber_setup["chamber"]
    db_session.add(Lead(chamber_id=chamber.id, name="Visitor", email="visitor@example.test", status="contacted", notes="called"))
    db_session.commit()
    login_as(visitor)

    client.post(
        "/api/connect",
        json={"lawyerId": str(chamber_setup["lawyer"].id), "chamberId": str(chamber.id), "message": "Following up"},
    )

    lead = db_session.query(Lead).one()
    assert lead.status == "contacted"
    assert lead.notes == "called"


def test_connect_requires_fields(client, make_user, login_as):
    login_as(make_user())

    response = client.post("/api/connect", json={"message": "hi"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


# ============================================================================
# Messages
# ============================================================================

def test_send_message_broadcasts_on_conversation_channel(client, db_session, chamber_setup, login_as, broadcast_mock):
    lawyer, client_user = chamber_setup["lawyer"], chamber_setup["client"]
    thread = _thread(db_session, lawyer, client_user)
    login_as(client_user)

    response = client.post(
        "/api/messages/send",
        json={"conversationId": str(thread.id), "senderId": str(client_user.id), "content": "Any update?"},
    )

    assert response.status_code == 200
    assert response.json()["message"]["content"] == "Any update?"
    channel, event, payload = broadcast_mock.call_args.args
    assert channel == f"conversation-{thread.id}"
    assert event == "message"
    assert payload["content"] == "Any update?"


def test_send_message_outside_thread_is_forbidden(client, db_session, chamber_setup, make_user, login_as):
    thread = _thread(db_session, chamber_setup["lawyer"], chamber_setup["client"])
    outsider = make_user()
    login_as(outsider)

    response = client.post("/api/messages/send", json={"conversationId": str(thread.id), "content": "hi"})

    assert response.status_code == 403


def test_send_message_unknown_thread(client, make_user, login_as):
    login_as(make_user())

    response = client.post("/api/messages/send", json={"conversationId": str(uuid.uuid4()), "content": "hi"})

    assert response.status_code == 404
    assert response.json() == {"error": "Thread not found"}


def test_broadcast_failure_does_not_fail_send(client, db_session, chamber_setup, login_as, broadcast_mock):
    request = httpx.Request("POST", "https://project.supabase.test/realtime/v1/api/broadcast")
    broadcast_mock.side_effect = httpx.HTTPStatusError("503", request=request, response=httpx.Response(503, request=request))
    thread = _thread(db_session, chamber_setup["lawyer"], chamber_setup["client"])
    login_as(chamber_setup["lawyer"])

    response = client.post("/api/messages/send", json={"conversationId": str(thread.id), "content": "Noted"})

    assert response.status_code == 200
    assert db_session.query(Message).count() == 1


def test_threads_messages_and_read_receipt(client, db_session, chamber_setup, login_as):
    lawyer, client_user = chamber_setup["lawyer"], chamber_setup["client"]
    thread = _thread(db_session, lawyer, client_user)
    login_as(lawyer)
    for text in ("one", "two", "three"):
        client.post("/api/messages/send", json={"conversationId": str(thread.id), "content": text})

    threads = client.get("/api/messages/threads").json()["threads"]
    assert len(threads) == 1
    assert threads[0]["client"]["id"] == str(client_user.id)
    assert threads[0]["lawyer"]["id"] == str(lawyer.id)

    page = client.get(f"/api/messages/threads/{thread.id}/messages", params={"limit": 2}).json()["messages"]
    assert len(page) == 2

    assert client.post(f"/api/messages/threads/{thread.id}/read").status_code == 200
    assert client.post(f"/api/messages/threads/{thread.id}/read").status_code == 200
    assert db_session.query(ThreadRead).count() == 1


# ============================================================================
# Chamber oversight
# ============================================================================

def test_admin_sees_chamber_conversations(client, db_session, chamber_setup, make_user, login_as):
    inside = _thread(db_session, chamber_setup["lawyer"], make_user(role="client"))
    _thread(db_session, make_user(role="lawyer"), make_user(role="client"))
    login_as(chamber_setup["admin"])

    conversations = client.get("/api/chambers/conversations").json()["conversations"]

    assert [c["id"] for c in conversations] == [str(inside.id)]


def test_admin_conversation_messages_access(client, db_session, chamber_setup, make_user, login_as):
    inside = _thread(db_session, chamber_setup["lawyer"], chamber_setup["client"])
    outside = _thread(db_session, make_user(role="lawyer"), make_user(role="client"))
    db_session.add(Message(thread_id=inside.id, sender_id=chamber_setup["lawyer"].id, content="hello"))
    db_session.commit()
    login_as(chamber_setup["admin"])

    body = client.get(f"/api/chambers/conversations/{inside.id}/messages").json()
    assert [m["content"] for m in body["messages"]] == ["hello"]
    assert body["reads"] == []

    denied = client.get(f"/api/chambers/conversations/{outside.id}/messages")
    assert denied.status_code == 403
    assert denied.json() == {"error": "Access denied to this communication node"}

    missing = client.get(f"/api/chambers/conversations/{uuid.uuid4()}/messages")
    assert missing.status_code == 404


def test_conversations_require_admin(client, chamber_setup, login_as):
    login_as(chamber_setup["lawyer"])

    response = client.get("/api/chambers/conversations")

    assert response.status_code == 403
    assert response.json() == {"error": "Administrator access required"}


# ============================================================================
# Connect guards and thread matching
# ============================================================================

def test_connect_rejects_lawyer_outside_chamber(client, db_session, chamber_setup, make_user, login_as):
    outsider = make_user(role="lawyer")
    login_as(make_user(email="visitor@example.test"))

    response = client.post(
        "/api/connect",
        json={"lawyerId": str(outsider.id), "chamberId": str(chamber_setup["chamber"].id), "message": "Hello"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Lawyer is not an active member of this chamber"}
    assert db_session.query(Lead).count() == 0
    assert db_session.query(MessageThread).count() == 0


def test_connect_does_not_reuse_group_thread(client, db_session, chamber_setup, make_user, login_as):
    visitor = make_user(email="visitor@example.test")
    lawyer = chamber_setup["lawyer"]
    group = _thread(db_session, visitor, lawyer, chamber_setup["admin"])
    login_as(visitor)

    body = client.post(
        "/api/connect",
        json={"lawyerId": str(lawyer.id), "chamberId": str(chamber_setup["chamber"].id), "message": "Hello"},
    ).json()

    assert body["threadId"] != str(group.id)
    assert db_session.query(MessageThread).count() == 2


def test_thread_listing_only_returns_own_threads(client, db_session, chamber_setup, make_user, login_as):
    lawyer = chamber_setup["lawyer"]
    mine = _thread(db_session, lawyer, chamber_setup["client"])
    _thread(db_session, make_user(role="lawyer"), make_user(role="client"))
    login_as(lawyer)

    threads = client.get("/api/messages/threads").json()["threads"]

    assert [t["id"] for t in threads] == [str(mine.id)]
