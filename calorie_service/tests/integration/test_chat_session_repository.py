from unittest.mock import patch

from core.constants import EventType, GREETING_MESSAGE
from models.chat import ChatEvent, ChatMessage, ChatSession
from repositories.chat import ChatSessionRepository, MessageRepository
from repositories.event_log import EventLog
from tests.helpers import TEST_DAY, TEST_USER_ID


def test_get_or_create_seeds_greeting_once(db, user):
    created_session, created = ChatSessionRepository.get_or_create(db, TEST_USER_ID, TEST_DAY)
    again, created_again = ChatSessionRepository.get_or_create(db, TEST_USER_ID, TEST_DAY)

    assert created is True
    assert created_again is False
    assert again.id == created_session.id
    messages = MessageRepository.get_messages(db, created_session.id)
    assert [(m.role, m.content) for m in messages] == [("assistant", GREETING_MESSAGE)]


def test_get_or_create_converges_when_another_request_wins(db, user):
    winner = ChatSession(user_id=TEST_USER_ID, date=TEST_DAY)
    db.add(winner)
    db.commit()
    winner_id = winner.id

    # Simulate the race: the existence check misses the row committed concurrently
    real_lookup = ChatSessionRepository.get_by_user_and_date
    calls = []

    def lookup(session, user_id, day):
        calls.append(day)
        if len(calls) == 1:
            return None
        return real_lookup(session, user_id, day)

    with patch.object(ChatSessionRepository, "get_by_user_and_date", side_effect=lookup):
        chat_session, created = ChatSessionRepository.get_or_create(db, TEST_USER_ID, TEST_DAY)

    assert created is False
    assert chat_session.id == winner_id
    assert db.query(ChatSession).count() == 1


def test_messages_are_strictly_ordered(db, chat_session):
    for n in range(5):
        MessageRepository.create_message(db, chat_session.id, "user", f"m{n}")

    stamps = [m.created_at for m in MessageRepository.get_messages(db, chat_session.id)]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


def test_recent_messages_excludes_and_keeps_order(db, chat_session):
    first = MessageRepository.create_message(db, chat_session.id, "user", "one")
    second = MessageRepository.create_message(db, chat_session.id, "assistant", "two")
    third = MessageRepository.create_message(db, chat_session.id, "user", "three")

    recent = MessageRepository.get_recent_messages(db, chat_session.id, limit=2, exclude_id=third.id)

    assert [m.id for m in recent] == [first.id, second.id]


def test_clear_removes_messages_and_events(db, chat_session):
    MessageRepository.create_message(db, chat_session.id, "user", "one")
    EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})

    deleted = ChatSessionRepository.clear(db, chat_session.id)

    assert deleted == 2  # greeting + one
    assert db.query(ChatMessage).count() == 0
    assert db.query(ChatEvent).count() == 0
    assert db.query(ChatSession).count() == 1
