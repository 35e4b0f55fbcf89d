import json
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from config import settings
from core.constants import EventType, MessageRole
from core.exceptions import ProviderError
from models.chat import ChatMessage
from repositories.chat import MessageRepository
from repositories.event_log import EventLog
from repositories.food import UserFoodRepository
from repositories.user_repo import UserRepository
from services.tool_executor import ToolExecutor, describe_outcome
from utils.context_builder import ContextBuilder
from utils.logger import get_logger

logger = get_logger("conversation")


class ConversationDriver:
    """
    Runs the model/tool loop for one accepted user message.

    Progress is only reported through the session's event log. Every run ends
    with exactly one ``completed`` event, whatever happened before it.
    """

    def __init__(
        self,
        db: Session,
        llm_client: Any,
        search_client: Any = None,
        max_tool_rounds: Optional[int] = None,
        max_history_messages: Optional[int] = None,
        user_foods_limit: Optional[int] = None,
    ):
        self.db = db
        self.llm_client = llm_client
        self.executor = ToolExecutor(db, search_client)
        self.max_tool_rounds = max_tool_rounds or settings.MAX_TOOL_ROUNDS
        self.max_history_messages = max_history_messages or settings.MAX_HISTORY_MESSAGES
        self.user_foods_limit = user_foods_limit or settings.USER_FOODS_CONTEXT_LIMIT
        self.context_builder = ContextBuilder(self.max_history_messages)

    async def run(
        self,
        chat_session_id: str,
        user_id: str,
        target_date: date,
        user_text: str,
        image_data: Optional[str] = None,
        user_message_id: Optional[str] = None,
    ) -> None:
        try:
            await self._run_rounds(
                chat_session_id, user_id, target_date, user_text, image_data, user_message_id
            )
        except Exception as e:
            logger.error(f"Conversation for session {chat_session_id} failed: {e}", exc_info=True)
            await run_in_threadpool(self._rollback)
            await self._emit(chat_session_id, EventType.ERROR, {"type": "error", "error": str(e) or type(e).__name__})
        finally:
            await self._emit(chat_session_id, EventType.COMPLETED, {"type": "completed"})

    async def _run_rounds(
        self,
        chat_session_id: str,
        user_id: str,
        target_date: date,
        user_text: str,
        image_data: Optional[str],
        user_message_id: Optional[str],
    ) -> None:
        messages = await run_in_threadpool(
            self.build_context, chat_session_id, user_id, user_text, image_data, user_message_id
        )
        await self._emit(chat_session_id, EventType.STATUS, {"type": "status", "message": "Processing your request..."})

        for round_number in range(1, self.max_tool_rounds + 1):
            try:
                reply = await self.llm_client.chat(messages, tools=self.executor.tools_schema)
            except ProviderError as e:
                await self._emit(chat_session_id, EventType.ERROR, e.to_event_payload())
                return

            if reply is None:
                await self._emit(chat_session_id, EventType.ERROR, {"type": "error", "error": "No response from AI"})
                return

            if not reply.tool_calls:
                if reply.content:
                    saved = await run_in_threadpool(
                        MessageRepository.create_message,
                        self.db,
                        chat_session_id,
                        MessageRole.ASSISTANT.value,
                        reply.content,
                    )
                    await self._emit_message(chat_session_id, saved)
                return

            logger.info(
                f"Round {round_number}: model requested {len(reply.tool_calls)} tool call(s) "
                f"for session {chat_session_id}"
            )
            saved = await run_in_threadpool(
                MessageRepository.create_message,
                self.db,
                chat_session_id,
                MessageRole.ASSISTANT.value,
                reply.content or "",
                tool_calls=json.dumps(reply.tool_calls),
            )
            await self._emit_message(chat_session_id, saved)
            messages.append({
                "role": "assistant",
                "content": reply.content or "",
                "tool_calls": reply.tool_calls,
            })

            for tool_call in reply.tool_calls:
                messages.append(
                    await self._run_tool_call(chat_session_id, user_id, target_date, tool_call)
                )

        logger.warning(
            f"Session {chat_session_id} reached the limit of {self.max_tool_rounds} tool rounds"
        )

    def build_context(
        self,
        chat_session_id: str,
        user_id: str,
        user_text: str,
        image_data: Optional[str],
        user_message_id: Optional[str],
    ) -> List[Dict[str, Any]]:
        targets = UserRepository(self.db).get_daily_targets(user_id)
        user_foods = UserFoodRepository.list_recent(self.db, user_id, self.user_foods_limit)
        # One extra row so the trimmer can tell a full window from an overflowing one
        history = MessageRepository.get_recent_messages(
            self.db,
            chat_session_id,
            limit=self.max_history_messages + 1,
            exclude_id=user_message_id,
        )
        return self.context_builder.build_messages(targets, user_foods, history, user_text, image_data)

    async def _run_tool_call(
        self,
        chat_session_id: str,
        user_id: str,
        target_date: date,
        tool_call: Dict[str, Any],
    ) -> Dict[str, Any]:
        tool_call_id = tool_call.get("id") or ""
        function = tool_call.get("function") or {}
        name = function.get("name") or ""

        await self._emit(chat_session_id, EventType.STATUS, {"type": "status", "message": f"Executing {name}..."})
        outcome = await self.executor.execute(name, function.get("arguments"), user_id, target_date)

        saved = await run_in_threadpool(
            MessageRepository.create_message,
            self.db,
            chat_session_id,
            MessageRole.TOOL.value,
            outcome.result_text,
            tool_call_id=tool_call_id,
        )
        await self._emit_message(chat_session_id, saved)

        changed = describe_outcome(outcome)
        if changed is not None:
            await self._emit(chat_session_id, EventType.DATA_CHANGED, {
                "type": "data_changed",
                "data": changed,
                "targetDate": target_date.isoformat(),
            })

        return {"role": "tool", "content": outcome.result_text, "tool_call_id": tool_call_id}

    async def _emit_message(self, chat_session_id: str, message: ChatMessage) -> None:
        await self._emit(chat_session_id, EventType.MESSAGE, {"type": "message", "message": message.to_payload()})

    async def _emit(self, chat_session_id: str, event_type: EventType, payload: Dict[str, Any]) -> None:
        await run_in_threadpool(EventLog.append, self.db, chat_session_id, event_type, payload)

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            logger.error(f"Rollback after conversation failure failed: {e}")
