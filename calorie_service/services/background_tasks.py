from datetime import date
from typing import Any, Callable, Optional

from fastapi.concurrency import run_in_threadpool

from core.constants import EventType
from repositories.event_log import EventLog
from services.conversation import ConversationDriver
from utils.logger import get_logger

logger = get_logger("background_tasks")


async def run_conversation(
    session_factory: Callable,
    llm_client: Any,
    search_client: Any,
    chat_session_id: str,
    user_id: str,
    target_date: date,
    user_text: str,
    image_data: Optional[str] = None,
    user_message_id: Optional[str] = None,
) -> None:
    """
    Background entry point scheduled by the ingress route.

    Runs after the response has been sent, so it owns its database session
    and must not let an exception escape into the server.
    """
    db = session_factory()
    try:
        driver = ConversationDriver(db, llm_client, search_client)
        await driver.run(
            chat_session_id,
            user_id,
            target_date,
            user_text,
            image_data=image_data,
            user_message_id=user_message_id,
        )
    except Exception as e:
        logger.error(f"Background conversation for session {chat_session_id} crashed: {e}", exc_info=True)
        await run_in_threadpool(EventLog.append, db, chat_session_id, EventType.ERROR, {"type": "error", "error": "Internal error"})
        await run_in_threadpool(EventLog.append, db, chat_session_id, EventType.COMPLETED, {"type": "completed"})
    finally:
        db.close()
