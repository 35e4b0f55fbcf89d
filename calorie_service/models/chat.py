from uuid import uuid4

from sqlalchemy import Column, String, Text, Date, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from utils.db_manager import Base, PreciseDateTime
from utils.time_utils import utcnow, to_iso


def _new_id() -> str:
    return str(uuid4())


class ChatSession(Base):
    """
    One conversation per user and calendar day
    """
    __tablename__ = "chat_sessions"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_chat_sessions_user_date"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    created_at = Column(PreciseDateTime, default=utcnow, nullable=False)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="chat_session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )
    events = relationship("ChatEvent", back_populates="chat_session", cascade="all, delete-orphan")


class ChatMessage(Base):
    """
    A single conversation turn. Rows are never updated once written.
    """
    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_session_created", "chat_session_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    chat_session_id = Column(String(36), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False)  # 'user', 'assistant' or 'tool'
    content = Column(Text, nullable=True)
    tool_calls = Column(Text, nullable=True)  # JSON array, assistant messages only
    tool_call_id = Column(String(255), nullable=True)  # tool messages only
    created_at = Column(PreciseDateTime, default=utcnow, nullable=False)

    chat_session = relationship("ChatSession", back_populates="messages")

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content or "",
            "toolCalls": self.tool_calls,
            "toolCallId": self.tool_call_id,
        }

    def to_dict(self) -> dict:
        return {**self.to_payload(), "createdAt": to_iso(self.created_at)}


class ChatEvent(Base):
    """
    Append-only delivery record read by the event stream
    """
    __tablename__ = "chat_events"
    __table_args__ = (
        Index("ix_chat_events_session_created", "chat_session_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    chat_session_id = Column(String(36), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(PreciseDateTime, default=utcnow, nullable=False)

    chat_session = relationship("ChatSession", back_populates="events")
