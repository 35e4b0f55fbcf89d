import json

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from api.middleware import get_current_user_id
from core.constants import MessageRole
from models.schemas import MessageDebugData, MessageDebugMetadata, MessageDebugResponse
from repositories.chat import MessageRepository
from utils.db_manager import get_db
from utils.time_utils import to_iso

router = APIRouter()


@router.get("/{message_id}/debug", response_model=MessageDebugResponse)
async def get_message_debug(
    message_id: str = Path(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    The tool calls an assistant turn requested, as stored by the conversation loop
    """
    message = MessageRepository.get_for_user(db, message_id, user_id)
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    if message.role != MessageRole.ASSISTANT.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Debug data only available for assistant messages",
        )

    return MessageDebugResponse(
        messageId=message.id,
        debugData=MessageDebugData(
            toolCalls=json.loads(message.tool_calls) if message.tool_calls else None,
            toolCallId=message.tool_call_id,
        ),
        metadata=MessageDebugMetadata(
            timestamp=to_iso(message.created_at),
            content=message.content or "",
            role=message.role,
        ),
    )
