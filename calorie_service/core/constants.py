from enum import Enum


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class EventType(str, Enum):
    STATUS = "status"
    MESSAGE = "message"
    DATA_CHANGED = "data_changed"
    ERROR = "error"
    COMPLETED = "completed"


# Used when a user has not set their own targets
DAILY_TARGETS = {
    "calories": 1900,
    "protein": 157,
    "carbs": 160,
    "fat": 70,
    "fiber": 37,
    "salt": 5,
}

GREETING_MESSAGE = (
    "Hi! I'm here to help you track your nutrition. "
    "Tell me what you ate and I'll log it for you!"
)

IMAGE_FALLBACK_TEXT = "Please analyze the attached photo and extract foods and nutrition."
IMAGE_ATTACHED_MARKER = "[Image attached]"
