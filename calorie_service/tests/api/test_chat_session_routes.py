from config import settings
from core.constants import EventType, GREETING_MESSAGE
from models.chat import ChatEvent
from repositories.chat import ChatSessionRepository, MessageRepository
from repositories.event_log import EventLog
from tests.helpers import OTHER_USER_ID, TEST_DAY, TEST_USER_ID

SESSIONS_URL = f"{settings.API_PREFIX}/chat-sessions"


def test_create_session_seeds_greeting_and_is_idempotent(client):
    first = client.post(SESSIONS_URL, json={"date": "2025-09-15"})
    second = client.post(SESSIONS_URL, json={"date": "2025-09-15"})

    assert first.status_code == 200
    body = first.json()
    assert body["userId"] == TEST_USER_ID
    assert body["date"] == "2025-09-15"
    assert [(m["role"], m["content"]) for m in body["messages"]] == [("assistant", GREETING_MESSAGE)]
    assert second.json()["id"] == body["id"]
    assert len(second.json()["messages"]) == 1


def test_create_session_without_date_uses_today(client):
    response = client.post(SESSIONS_URL)
    assert response.status_code == 200
    assert len(response.json()["date"]) == 10


def test_get_session_for_date(client, chat_session):
    response = client.get(SESSIONS_URL, params={"date": TEST_DAY.isoformat()})

    assert response.status_code == 200
    assert response.json()["id"] == chat_session.id


def test_get_session_rejects_bad_date(client):
    response = client.get(SESSIONS_URL, params={"date": "yesterday"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_list_messages_in_order(client, db, chat_session):
    MessageRepository.create_message(db, chat_session.id, "user", "I had toast")
    MessageRepository.create_message(db, chat_session.id, "assistant", "Logged")

    response = client.get(f"{SESSIONS_URL}/{chat_session.id}/messages")

    assert response.status_code == 200
    assert [m["content"] for m in response.json()] == [GREETING_MESSAGE, "I had toast", "Logged"]
    assert all(m["createdAt"].endswith("Z") for m in response.json())


def test_clear_session(client, db, chat_session):
    MessageRepository.create_message(db, chat_session.id, "user", "I had toast")
    EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})

    response = client.delete(f"{SESSIONS_URL}/{chat_session.id}/clear")

    assert response.status_code == 200
    assert response.json() == {"success": True, "deletedCount": 2}
    assert MessageRepository.get_messages(db, chat_session.id) == []
    assert db.query(ChatEvent).count() == 0


def test_other_users_session_is_not_found(client, db):
    foreign, _ = ChatSessionRepository.get_or_create(db, OTHER_USER_ID, TEST_DAY)

    assert client.get(f"{SESSIONS_URL}/{foreign.id}/messages").status_code == 404
    assert client.delete(f"{SESSIONS_URL}/{foreign.id}/clear").status_code == 404
    assert len(MessageRepository.get_messages(db, foreign.id)) == 1
