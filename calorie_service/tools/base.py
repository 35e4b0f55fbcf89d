from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional

from sqlalchemy.orm import Session


class ToolName(str, Enum):
    CREATE_FOOD = "create_food"
    UPDATE_FOOD = "update_food"
    DELETE_FOOD = "delete_food"
    ADD_FOOD_ENTRY = "add_food_entry"
    EDIT_FOOD_ENTRY = "edit_food_entry"
    DELETE_FOOD_ENTRY = "delete_food_entry"
    WEB_SEARCH = "web_search"


class SideEffectKind(str, Enum):
    """Keys of the ``data`` object in data_changed events"""
    FOOD_ADDED = "foodAdded"
    FOOD_UPDATED = "foodUpdated"
    FOOD_DELETED = "foodDeleted"
    USER_FOOD_CREATED = "userFoodCreated"
    USER_FOOD_UPDATED = "userFoodUpdated"
    USER_FOOD_DELETED = "userFoodDeleted"


@dataclass
class SideEffect:
    kind: SideEffectKind
    record: Any


@dataclass
class ToolOutcome:
    result_text: str
    side_effect: Optional[SideEffect] = None


@dataclass
class ToolContext:
    """Caller-supplied context for a tool call; never exposed to the model"""
    db: Session
    user_id: str
    target_date: date
    search_client: Any = None
