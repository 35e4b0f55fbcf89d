from fastapi import APIRouter
from .chat_routes import router as chat_router
from .chat_message_routes import router as chat_message_router
from .chat_session_routes import router as chat_session_router

router = APIRouter()

# Register sub-routers
router.include_router(chat_router, prefix="/chat", tags=["chat"])
router.include_router(chat_session_router, prefix="/chat-sessions", tags=["chat sessions"])
router.include_router(chat_message_router, prefix="/chat-messages", tags=["chat messages"])
