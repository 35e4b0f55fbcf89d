import json
from typing import Any, Dict, Iterable, List, Optional, Union

from core.constants import MessageRole
from core.prompts import build_system_prompt
from models.chat import ChatMessage
from models.food import UserFood
from utils.logger import get_logger

logger = get_logger("context_builder")


def trim_history(history: List[Dict[str, Any]], cap: int) -> List[Dict[str, Any]]:
    """
    Keep at most ``cap`` trailing messages, starting at a user turn.

    Nothing is trimmed while the history fits. Otherwise the window is the
    newest ``cap`` messages advanced to its first user message, so it never
    opens with an orphaned assistant or tool turn. A window without any user
    message is dropped.
    """
    if len(history) <= cap:
        return list(history)

    window = history[len(history) - cap:]
    for index, message in enumerate(window):
        if message.get("role") == MessageRole.USER.value:
            return window[index:]
    return []


def message_to_turn(message: ChatMessage) -> Optional[Dict[str, Any]]:
    """Replay a stored message in the provider's message format"""
    if message.role == MessageRole.USER.value:
        return {"role": "user", "content": message.content or ""}

    if message.role == MessageRole.ASSISTANT.value:
        turn: Dict[str, Any] = {"role": "assistant", "content": message.content or ""}
        if message.tool_calls:
            try:
                turn["tool_calls"] = json.loads(message.tool_calls)
            except ValueError:
                logger.warning(f"Ignoring unreadable tool calls on message {message.id}")
        return turn

    if message.role == MessageRole.TOOL.value:
        return {
            "role": "tool",
            "content": message.content or "",
            "tool_call_id": message.tool_call_id or "",
        }

    logger.warning(f"Skipping message {message.id} with unknown role {message.role}")
    return None


def image_url(image_data: str) -> str:
    """Data URLs pass through; bare base64 is assumed to be JPEG"""
    image_data = image_data.strip()
    if image_data.startswith("data:") or image_data.startswith("http"):
        return image_data
    return f"data:image/jpeg;base64,{image_data}"


def build_user_content(text: str, image_data: Optional[str] = None) -> Union[str, List[Dict[str, Any]]]:
    if not image_data:
        return text
    return [
        {"type": "text", "text": text},
        {"type": "image_url", "image_url": {"url": image_url(image_data)}},
    ]


class ContextBuilder:
    def __init__(self, max_history_messages: int = 100):
        self.max_history_messages = max_history_messages

    def build_messages(
        self,
        targets: Dict[str, float],
        user_foods: Iterable[UserFood],
        history: Iterable[ChatMessage],
        user_text: str,
        image_data: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Working message list for the first round: system prompt, trimmed
        history, then the new user turn.
        """
        turns = [turn for turn in (message_to_turn(m) for m in history) if turn is not None]
        trimmed = trim_history(turns, self.max_history_messages)

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(targets, user_foods)}
        ]
        messages.extend(trimmed)
        messages.append({"role": "user", "content": build_user_content(user_text, image_data)})

        logger.debug(f"Built context with {len(trimmed)} of {len(turns)} history messages")
        return messages
