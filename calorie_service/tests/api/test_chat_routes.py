from datetime import datetime, timedelta, timezone

import jwt
import pytest

from api.middleware import get_current_user_id
from config import settings
from core.exceptions import ConfigurationError
from main import app
from models.chat import ChatEvent, ChatMessage
from repositories.chat import ChatSessionRepository, MessageRepository
from services.llm_client import get_llm_client_factory
from tests.helpers import OTHER_USER_ID, TEST_DAY, TEST_USER_ID, event_payloads, text_reply

PROCESS_URL = f"{settings.API_PREFIX}/chat/process"
STREAM_URL = f"{settings.API_PREFIX}/chat/events/stream"


def _body(chat_session, **overrides):
    body = {"message": "I had 50g of oats", "chatSessionId": chat_session.id, "date": "2025-09-14"}
    body.update(overrides)
    return {key: value for key, value in body.items() if value is not None}


def test_process_accepts_and_runs_conversation(client, db, chat_session, fake_llm):
    fake_llm.replies.append(text_reply("Logged!"))

    response = client.post(PROCESS_URL, json=_body(chat_session))

    assert response.status_code == 202
    assert response.json() == {"accepted": True}
    events = event_payloads(db, chat_session.id)
    assert [event_type for event_type, _ in events] == ["message", "status", "message", "completed"]
    assert events[0][1]["message"]["role"] == "user"
    assert events[0][1]["message"]["content"] == "I had 50g of oats"
    assert events[2][1]["message"]["content"] == "Logged!"
    # the new user turn is sent once, not replayed from history as well
    sent = fake_llm.calls[0]["messages"]
    assert [m for m in sent if m.get("content") == "I had 50g of oats"] == [sent[-1]]


def test_image_only_message_uses_fallback_text(client, db, chat_session, fake_llm):
    fake_llm.replies.append(text_reply("A bowl of oats"))

    response = client.post(PROCESS_URL, json=_body(chat_session, message="  ", imageData="QUJD"))

    assert response.status_code == 202
    stored = [m for m in MessageRepository.get_messages(db, chat_session.id) if m.role == "user"]
    assert stored[0].content == (
        "Please analyze the attached photo and extract foods and nutrition.\n[Image attached]"
    )
    parts = fake_llm.calls[0]["messages"][-1]["content"]
    assert parts[0] == {"type": "text", "text": "Please analyze the attached photo and extract foods and nutrition."}
    assert parts[1]["image_url"]["url"] == "data:image/jpeg;base64,QUJD"


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"chatSessionId": None}, "chatSessionId is required"),
        ({"date": None}, "Date parameter is required"),
        ({"date": "14.09.2025"}, "Invalid date format (expected YYYY-MM-DD)"),
        ({"message": None}, "Message or image is required"),
        ({"message": "   ", "imageData": ""}, "Message or image is required"),
    ],
)
def test_process_rejects_invalid_requests(client, db, chat_session, fake_llm, overrides, error):
    response = client.post(PROCESS_URL, json=_body(chat_session, **overrides))

    assert response.status_code == 400
    assert response.json() == {"error": error}
    assert db.query(ChatEvent).count() == 0
    assert db.query(ChatMessage).filter(ChatMessage.role == "user").count() == 0
    assert fake_llm.calls == []


def _missing_credential():
    raise ConfigurationError("Provider API key is not configured")


def test_invalid_request_is_rejected_before_client_setup(client, db, chat_session):
    app.dependency_overrides[get_llm_client_factory] = lambda: _missing_credential

    response = client.post(PROCESS_URL, json=_body(chat_session, message=None))

    assert response.status_code == 400
    assert response.json() == {"error": "Message or image is required"}


def test_missing_credential_fails_valid_request_without_storing(client, db, chat_session):
    app.dependency_overrides[get_llm_client_factory] = lambda: _missing_credential

    response = client.post(PROCESS_URL, json=_body(chat_session))

    assert response.status_code == 500
    assert response.json() == {"error": "Provider API key is not configured"}
    assert db.query(ChatEvent).count() == 0
    assert db.query(ChatMessage).filter(ChatMessage.role == "user").count() == 0


def test_process_rejects_other_users_session(client, db):
    foreign, _ = ChatSessionRepository.get_or_create(db, OTHER_USER_ID, TEST_DAY)

    response = client.post(PROCESS_URL, json=_body(foreign))

    assert response.status_code == 404
    assert response.json() == {"error": "Chat session not found"}


def test_provider_failure_is_still_accepted(client, db, chat_session, fake_llm):
    from tests.helpers import provider_failure

    fake_llm.replies.append(provider_failure())

    response = client.post(PROCESS_URL, json=_body(chat_session))

    assert response.status_code == 202
    types = [event_type for event_type, _ in event_payloads(db, chat_session.id)]
    assert types[-2:] == ["error", "completed"]


def test_stream_requires_session_id(client):
    response = client.get(STREAM_URL)
    assert response.status_code == 400
    assert response.json() == {"error": "chatSessionId is required"}


def test_stream_rejects_bad_since(client, chat_session):
    response = client.get(STREAM_URL, params={"chatSessionId": chat_session.id, "since": "last tuesday"})
    assert response.status_code == 400


def test_stream_rejects_other_users_session(client, db):
    foreign, _ = ChatSessionRepository.get_or_create(db, OTHER_USER_ID, TEST_DAY)
    response = client.get(STREAM_URL, params={"chatSessionId": foreign.id})
    assert response.status_code == 404


def _token(sub, expires_in):
    payload = {"sub": sub, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    return jwt.encode(payload, settings.TOKEN_SECRET_KEY, algorithm=settings.TOKEN_ALGORITHM)


@pytest.fixture
def authed_client(client):
    # real authentication, everything else overridden
    app.dependency_overrides.pop(get_current_user_id)
    return client


def test_missing_token_is_unauthorized(authed_client, chat_session):
    response = authed_client.post(PROCESS_URL, json=_body(chat_session))
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_expired_token_is_unauthorized(authed_client, chat_session):
    headers = {"Authorization": f"Bearer {_token(TEST_USER_ID, -60)}"}
    response = authed_client.post(PROCESS_URL, json=_body(chat_session), headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Token has expired"}


def test_valid_token_identifies_user(authed_client, chat_session, fake_llm):
    fake_llm.replies.append(text_reply("ok"))
    headers = {"Authorization": f"Bearer {_token(TEST_USER_ID, 600)}"}

    response = authed_client.post(PROCESS_URL, json=_body(chat_session), headers=headers)

    assert response.status_code == 202


def test_dev_mode_uses_dev_user(authed_client, db, monkeypatch):
    monkeypatch.setattr(settings, "DEV_MODE", True)

    response = authed_client.post(f"{settings.API_PREFIX}/chat-sessions", json={"date": "2025-09-14"})

    assert response.status_code == 200
    assert response.json()["userId"] == settings.DEV_USER_ID
