import json
import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from core.constants import EventType
from models.chat import ChatEvent
from repositories.event_log import EventLog
from services.event_stream import EventStreamBridge, format_sse
from utils.db_manager import SessionLocal
from utils.time_utils import to_iso, utcnow


def _frames_to_payloads(frames):
    payloads = []
    for frame in frames:
        assert frame.startswith("data: ") and frame.endswith("\n\n")
        payloads.append(json.loads(frame[len("data: "):]))
    return payloads


def test_format_sse():
    assert format_sse({"type": "completed"}) == 'data: {"type": "completed"}\n\n'


def test_poll_relays_events_with_metadata_and_advances_cursor(db, chat_session):
    first = EventLog.append(db, chat_session.id, EventType.STATUS, {"type": "status", "message": "a"})
    second = EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})
    bridge = EventStreamBridge(SessionLocal, chat_session.id, since=first.created_at - timedelta(seconds=1))

    payloads = _frames_to_payloads(bridge.poll())

    assert payloads == [
        {"type": "status", "message": "a", "_ts": to_iso(first.created_at), "_eventId": first.id},
        {"type": "completed", "_ts": to_iso(second.created_at), "_eventId": second.id},
    ]
    assert bridge.cursor == second.created_at
    assert bridge.poll() == []


def test_reconnect_with_since_resumes_after_last_seen_event(db, chat_session):
    first = EventLog.append(db, chat_session.id, EventType.STATUS, {"n": 1})
    second = EventLog.append(db, chat_session.id, EventType.STATUS, {"n": 2})

    bridge = EventStreamBridge(SessionLocal, chat_session.id, since=first.created_at)
    payloads = _frames_to_payloads(bridge.poll())

    assert [p["_eventId"] for p in payloads] == [second.id]


def test_default_window_skips_old_events(db, chat_session):
    db.add(ChatEvent(
        chat_session_id=chat_session.id,
        type="status",
        payload=json.dumps({"type": "status"}),
        created_at=utcnow() - timedelta(seconds=30),
    ))
    db.commit()
    fresh = EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})

    payloads = _frames_to_payloads(EventStreamBridge(SessionLocal, chat_session.id).poll())

    assert [p["_eventId"] for p in payloads] == [fresh.id]


def test_unreadable_payload_is_skipped_but_passed(db, chat_session):
    start = utcnow() - timedelta(seconds=1)
    broken = ChatEvent(chat_session_id=chat_session.id, type="status", payload="{oops", created_at=utcnow())
    db.add(broken)
    db.commit()
    good = EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})

    bridge = EventStreamBridge(SessionLocal, chat_session.id, since=start)
    payloads = _frames_to_payloads(bridge.poll())

    assert [p["_eventId"] for p in payloads] == [good.id]
    assert bridge.cursor == good.created_at


def test_batch_limit(db, chat_session):
    start = utcnow() - timedelta(seconds=1)
    for n in range(5):
        EventLog.append(db, chat_session.id, EventType.STATUS, {"n": n})

    bridge = EventStreamBridge(SessionLocal, chat_session.id, since=start, batch_limit=2)

    assert [p["n"] for p in _frames_to_payloads(bridge.poll())] == [0, 1]
    assert [p["n"] for p in _frames_to_payloads(bridge.poll())] == [2, 3]


def test_read_failure_becomes_error_frame_and_keeps_cursor():
    broken_session = MagicMock()
    broken_session.query.side_effect = RuntimeError("connection lost")
    since = utcnow()
    bridge = EventStreamBridge(lambda: broken_session, "session-1", since=since)

    assert _frames_to_payloads(bridge.poll()) == [{"type": "error", "error": "Failed to fetch events"}]
    assert bridge.cursor == since
    broken_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_stream_runs_until_client_disconnects(db, chat_session):
    start = utcnow() - timedelta(seconds=1)
    EventLog.append(db, chat_session.id, EventType.STATUS, {"type": "status", "message": "working"})
    EventLog.append(db, chat_session.id, EventType.COMPLETED, {"type": "completed"})
    checks = iter([False, False, True])

    async def is_disconnected():
        return next(checks)

    bridge = EventStreamBridge(SessionLocal, chat_session.id, since=start, poll_interval=0)
    frames = [frame async for frame in bridge.stream(is_disconnected)]

    assert [p["type"] for p in _frames_to_payloads(frames)] == ["status", "completed"]


@pytest.mark.asyncio
async def test_stream_polls_off_the_event_loop_thread(db, chat_session):
    loop_thread = threading.get_ident()
    poll_threads = []
    bridge = EventStreamBridge(SessionLocal, chat_session.id, poll_interval=0)

    def poll():
        poll_threads.append(threading.get_ident())
        return []

    bridge.poll = poll
    checks = iter([False, True])

    async def is_disconnected():
        return next(checks)

    assert [frame async for frame in bridge.stream(is_disconnected)] == []
    assert len(poll_threads) == 1
    assert poll_threads[0] != loop_thread
