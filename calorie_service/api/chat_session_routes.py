from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from api.middleware import get_current_user_id
from models.chat import ChatSession
from models.schemas import ChatSessionCreate, ChatSessionResponse, MessageResponse
from repositories.chat import ChatSessionRepository, MessageRepository
from utils.db_manager import get_db
from utils.logger import get_logger
from utils.time_utils import to_iso, utcnow
from utils.validators import Validators

logger = get_logger("api.chat_sessions")

router = APIRouter()


def _resolve_day(value: Optional[str]) -> date:
    if not Validators.has_text(value):
        return utcnow().date()
    ok, day, error = Validators.validate_date(value)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
    return day


def _session_response(db: Session, chat_session: ChatSession) -> ChatSessionResponse:
    messages = MessageRepository.get_messages(db, chat_session.id)
    return ChatSessionResponse(
        id=chat_session.id,
        userId=chat_session.user_id,
        date=chat_session.date.isoformat(),
        createdAt=to_iso(chat_session.created_at),
        updatedAt=to_iso(chat_session.updated_at),
        messages=[MessageResponse(**message.to_dict()) for message in messages],
    )


def _owned_session(db: Session, chat_session_id: str, user_id: str) -> ChatSession:
    chat_session = ChatSessionRepository.get_for_user(db, chat_session_id, user_id)
    if not chat_session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")
    return chat_session


@router.post("", response_model=ChatSessionResponse)
async def create_chat_session(
    payload: Optional[ChatSessionCreate] = Body(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Get or create the chat session for a day. New sessions start with a greeting.
    """
    day = _resolve_day(payload.date if payload else None)
    chat_session, created = ChatSessionRepository.get_or_create(db, user_id, day)
    if created:
        logger.info(f"Created chat session {chat_session.id} for user {user_id} on {day}")
    return _session_response(db, chat_session)


@router.get("", response_model=ChatSessionResponse)
async def get_chat_session(
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    The chat session for a day, created on first access
    """
    chat_session, _ = ChatSessionRepository.get_or_create(db, user_id, _resolve_day(day))
    return _session_response(db, chat_session)


@router.get("/{chat_session_id}/messages", response_model=List[MessageResponse])
async def get_chat_messages(
    chat_session_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    chat_session = _owned_session(db, chat_session_id, user_id)
    return [MessageResponse(**message.to_dict()) for message in MessageRepository.get_messages(db, chat_session.id)]


@router.delete("/{chat_session_id}/clear")
async def clear_chat_session(
    chat_session_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Remove every message and event of the session; the session itself stays
    """
    chat_session = _owned_session(db, chat_session_id, user_id)
    deleted = ChatSessionRepository.clear(db, chat_session.id)
    logger.info(f"Cleared {deleted} messages from chat session {chat_session.id}")
    return {"success": True, "deletedCount": deleted}
