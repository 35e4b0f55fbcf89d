import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import EventType
from models.chat import ChatEvent
from utils.logger import get_logger
from utils.time_utils import next_timestamp

logger = get_logger("events")


class EventLog:
    """
    Append-only per-session event log backing the event stream.

    Writes are best-effort: ChatMessage rows are the source of truth, so a
    failed append is logged and dropped instead of interrupting the caller.
    """

    @staticmethod
    def append(
        db: Session,
        chat_session_id: str,
        event_type: EventType,
        payload: Dict[str, Any],
    ) -> Optional[ChatEvent]:
        try:
            latest = db.query(ChatEvent.created_at)\
                .filter(ChatEvent.chat_session_id == chat_session_id)\
                .order_by(ChatEvent.created_at.desc())\
                .limit(1)\
                .scalar()
            event = ChatEvent(
                chat_session_id=chat_session_id,
                type=EventType(event_type).value,
                payload=json.dumps(payload, default=str),
                created_at=next_timestamp(latest),
            )
            db.add(event)
            db.commit()
            return event
        except Exception as e:
            logger.error(f"Failed to create chat event {event_type} for session {chat_session_id}: {e}")
            try:
                db.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after failed chat event write also failed: {rollback_error}")
            return None

    @staticmethod
    def read_since(
        db: Session,
        chat_session_id: str,
        since: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[ChatEvent]:
        """Events strictly newer than ``since``, oldest first"""
        query = db.query(ChatEvent).filter(ChatEvent.chat_session_id == chat_session_id)
        if since is not None:
            query = query.filter(ChatEvent.created_at > since)
        return query.order_by(ChatEvent.created_at.asc()).limit(limit).all()
