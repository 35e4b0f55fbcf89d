from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ProcessChatRequest(BaseModel):
    """Body of the chat ingress endpoint. Presence rules are checked by the route."""
    message: Optional[str] = Field(None, description="User text")
    image_data: Optional[str] = Field(None, alias="imageData", description="Data URL or base64 image")
    chat_session_id: Optional[str] = Field(None, alias="chatSessionId")
    date: Optional[str] = Field(None, description="Day being logged, YYYY-MM-DD")

    class Config:
        populate_by_name = True


class AcceptedResponse(BaseModel):
    accepted: bool = True


class ChatSessionCreate(BaseModel):
    date: Optional[str] = Field(None, description="YYYY-MM-DD, defaults to today")


class MessageResponse(BaseModel):
    id: str
    role: str
    content: str
    toolCalls: Optional[str] = None
    toolCallId: Optional[str] = None
    createdAt: str


class ChatSessionResponse(BaseModel):
    id: str
    userId: str
    date: str
    createdAt: str
    updatedAt: str
    messages: List[MessageResponse] = []


class MessageDebugData(BaseModel):
    toolCalls: Optional[List[Dict[str, Any]]] = None
    toolCallId: Optional[str] = None


class MessageDebugMetadata(BaseModel):
    timestamp: str
    content: str
    role: str


class MessageDebugResponse(BaseModel):
    """Raw tool-call data persisted for an assistant turn"""
    messageId: str
    debugData: MessageDebugData
    metadata: MessageDebugMetadata
