from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import GREETING_MESSAGE, MessageRole
from models.chat import ChatSession, ChatMessage, ChatEvent
from utils.logger import get_logger
from utils.time_utils import next_timestamp

logger = get_logger("repositories.chat")


class ChatSessionRepository:
    """Repository for chat session operations"""

    @staticmethod
    def get_for_user(db: Session, chat_session_id: str, user_id: str) -> Optional[ChatSession]:
        """Get a session only if it belongs to the user"""
        return db.query(ChatSession)\
            .filter(ChatSession.id == chat_session_id, ChatSession.user_id == user_id)\
            .first()

    @staticmethod
    def get_by_user_and_date(db: Session, user_id: str, day: date) -> Optional[ChatSession]:
        return db.query(ChatSession)\
            .filter(ChatSession.user_id == user_id, ChatSession.date == day)\
            .first()

    @staticmethod
    def get_or_create(db: Session, user_id: str, day: date) -> Tuple[ChatSession, bool]:
        """
        Get the session for (user, day), creating it when missing.

        Concurrent creators race on the (user_id, date) unique constraint; the
        loser rolls back and reads the winner's row, so every caller ends up
        with the same session.

        Returns:
            (session, created)
        """
        existing = ChatSessionRepository.get_by_user_and_date(db, user_id, day)
        if existing:
            return existing, False

        chat_session = ChatSession(user_id=user_id, date=day)
        db.add(chat_session)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Chat session for user {user_id} on {day} created concurrently, reusing it")
            existing = ChatSessionRepository.get_by_user_and_date(db, user_id, day)
            if existing is None:
                raise
            return existing, False

        db.refresh(chat_session)
        MessageRepository.create_message(db, chat_session.id, MessageRole.ASSISTANT.value, GREETING_MESSAGE)
        return chat_session, True

    @staticmethod
    def clear(db: Session, chat_session_id: str) -> int:
        """Delete all messages and events of a session. Returns the number of messages removed."""
        deleted = db.query(ChatMessage)\
            .filter(ChatMessage.chat_session_id == chat_session_id)\
            .delete(synchronize_session=False)
        db.query(ChatEvent)\
            .filter(ChatEvent.chat_session_id == chat_session_id)\
            .delete(synchronize_session=False)
        db.commit()
        return deleted


class MessageRepository:
    """Repository for chat message operations"""

    @staticmethod
    def latest_timestamp(db: Session, chat_session_id: str):
        return db.query(ChatMessage.created_at)\
            .filter(ChatMessage.chat_session_id == chat_session_id)\
            .order_by(ChatMessage.created_at.desc())\
            .limit(1)\
            .scalar()

    @staticmethod
    def create_message(
        db: Session,
        chat_session_id: str,
        role: str,
        content: Optional[str],
        tool_calls: Optional[str] = None,
        tool_call_id: Optional[str] = None,
    ) -> ChatMessage:
        """Create a message; its timestamp sorts after every earlier message of the session"""
        message = ChatMessage(
            chat_session_id=chat_session_id,
            role=role,
            content=content,
            tool_calls=tool_calls,
            tool_call_id=tool_call_id,
            created_at=next_timestamp(MessageRepository.latest_timestamp(db, chat_session_id)),
        )
        db.add(message)
        db.query(ChatSession)\
            .filter(ChatSession.id == chat_session_id)\
            .update({ChatSession.updated_at: message.created_at}, synchronize_session=False)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def get_messages(db: Session, chat_session_id: str) -> List[ChatMessage]:
        """All messages of a session, oldest first"""
        return db.query(ChatMessage)\
            .filter(ChatMessage.chat_session_id == chat_session_id)\
            .order_by(ChatMessage.created_at)\
            .all()

    @staticmethod
    def get_recent_messages(
        db: Session,
        chat_session_id: str,
        limit: int,
        exclude_id: Optional[str] = None,
    ) -> List[ChatMessage]:
        """The newest ``limit`` messages, returned oldest first"""
        query = db.query(ChatMessage).filter(ChatMessage.chat_session_id == chat_session_id)
        if exclude_id:
            query = query.filter(ChatMessage.id != exclude_id)
        rows = query.order_by(ChatMessage.created_at.desc()).limit(limit).all()
        rows.reverse()
        return rows

    @staticmethod
    def get_for_user(db: Session, message_id: str, user_id: str) -> Optional[ChatMessage]:
        """Get a message only if its session belongs to the user"""
        return db.query(ChatMessage)\
            .join(ChatSession, ChatMessage.chat_session_id == ChatSession.id)\
            .filter(ChatMessage.id == message_id, ChatSession.user_id == user_id)\
            .first()
