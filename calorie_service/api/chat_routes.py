from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from api.middleware import get_current_user_id
from core.constants import EventType, IMAGE_ATTACHED_MARKER, IMAGE_FALLBACK_TEXT, MessageRole
from models.schemas import AcceptedResponse, ProcessChatRequest
from repositories.chat import ChatSessionRepository, MessageRepository
from repositories.event_log import EventLog
from services.background_tasks import run_conversation
from services.event_stream import EventStreamBridge, SSE_HEADERS
from services.food_search import FoodSearchClient, get_food_search_client
from services.llm_client import LLMClient, get_llm_client_factory
from utils.db_manager import get_db, get_session_factory
from utils.logger import get_logger
from utils.validators import Validators

logger = get_logger("api.chat")

router = APIRouter()


def stored_user_content(text: str, has_image: bool) -> str:
    """What the chat history keeps for a user turn; the image itself is not stored"""
    if not has_image:
        return text
    return f"{text}\n{IMAGE_ATTACHED_MARKER}" if text else IMAGE_ATTACHED_MARKER


@router.post("/process", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def process_message(
    background_tasks: BackgroundTasks,
    request: ProcessChatRequest = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    session_factory: Callable = Depends(get_session_factory),
    llm_client_factory: Callable[[], LLMClient] = Depends(get_llm_client_factory),
    search_client: FoodSearchClient = Depends(get_food_search_client),
):
    """
    Accept a chat message and continue the conversation in the background.

    Progress and results are delivered through the event stream.
    """
    if not Validators.has_text(request.chat_session_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="chatSessionId is required")

    date_ok, target_date, date_error = Validators.validate_date(request.date)
    if not date_ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=date_error)

    input_ok, input_error = Validators.validate_chat_input(request.message, request.image_data)
    if not input_ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=input_error)

    chat_session = ChatSessionRepository.get_for_user(db, request.chat_session_id, user_id)
    if not chat_session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")

    llm_client = llm_client_factory()

    has_image = Validators.has_text(request.image_data)
    user_text = request.message if Validators.has_text(request.message) else IMAGE_FALLBACK_TEXT
    image_data = request.image_data if has_image else None

    saved = MessageRepository.create_message(
        db, chat_session.id, MessageRole.USER.value, stored_user_content(user_text, has_image)
    )
    EventLog.append(db, chat_session.id, EventType.MESSAGE, {"type": "message", "message": saved.to_payload()})

    background_tasks.add_task(
        run_conversation,
        session_factory,
        llm_client,
        search_client,
        chat_session.id,
        user_id,
        target_date,
        user_text,
        image_data=image_data,
        user_message_id=saved.id,
    )
    logger.info(f"Accepted message {saved.id} for session {chat_session.id}")
    return AcceptedResponse(accepted=True)


@router.get("/events/stream")
async def stream_events(
    request: Request,
    chat_session_id: Optional[str] = Query(None, alias="chatSessionId"),
    since: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    session_factory: Callable = Depends(get_session_factory),
):
    """
    Server-sent events for one chat session, starting after ``since``
    """
    if not Validators.has_text(chat_session_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="chatSessionId is required")

    since_ok, since_value, since_error = Validators.validate_since(since)
    if not since_ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=since_error)

    if not ChatSessionRepository.get_for_user(db, chat_session_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat session not found")

    bridge = EventStreamBridge(session_factory, chat_session_id, since=since_value)
    return StreamingResponse(
        bridge.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
