import asyncio
import json
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from config import settings
from repositories.event_log import EventLog
from utils.logger import get_logger
from utils.time_utils import to_iso, utcnow

logger = get_logger("event_stream")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def default_since() -> datetime:
    return utcnow() - timedelta(seconds=settings.EVENT_SINCE_WINDOW_SECONDS)


class EventStreamBridge:
    """
    Relays a session's event log to one SSE client by polling.

    Each poll uses a fresh database session so that rows committed by the
    background conversation become visible. The cursor only moves forward.
    """

    def __init__(
        self,
        session_factory: Callable,
        chat_session_id: str,
        since: Optional[datetime] = None,
        poll_interval: Optional[float] = None,
        batch_limit: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.chat_session_id = chat_session_id
        self.cursor = since or default_since()
        self.poll_interval = settings.EVENT_POLL_INTERVAL if poll_interval is None else poll_interval
        self.batch_limit = batch_limit or settings.EVENT_BATCH_LIMIT

    def poll(self) -> List[str]:
        """
        Read the next batch after the cursor and return it as SSE frames.

        A failed read yields a single error frame and leaves the cursor alone.
        """
        db = self.session_factory()
        try:
            rows = [
                (event.id, event.payload, event.created_at)
                for event in EventLog.read_since(db, self.chat_session_id, self.cursor, self.batch_limit)
            ]
        except Exception as e:
            logger.error(f"Failed to fetch events for session {self.chat_session_id}: {e}")
            return [format_sse({"type": "error", "error": "Failed to fetch events"})]
        finally:
            db.close()

        return [frame for frame in (self._relay(row) for row in rows) if frame is not None]

    def _relay(self, row: Tuple[str, str, datetime]) -> Optional[str]:
        event_id, payload, created_at = row
        self.cursor = created_at
        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning(f"Skipping event {event_id} with unreadable payload")
            return None
        if not isinstance(data, dict):
            data = {"data": data}
        data["_ts"] = to_iso(created_at)
        data["_eventId"] = event_id
        return format_sse(data)

    async def stream(self, is_disconnected: Callable) -> AsyncIterator[str]:
        """Yield frames until ``is_disconnected()`` reports the client gone"""
        logger.info(f"Event stream opened for session {self.chat_session_id} since {to_iso(self.cursor)}")
        try:
            while not await is_disconnected():
                # blocking database read
                for frame in await run_in_threadpool(self.poll):
                    yield frame
                await asyncio.sleep(self.poll_interval)
        finally:
            logger.info(f"Event stream closed for session {self.chat_session_id}")
