from tools.base import ToolName, ToolContext, ToolOutcome, SideEffect, SideEffectKind
from tools.food_tools import (
    create_food,
    update_food,
    delete_food,
    add_food_entry,
    edit_food_entry,
    delete_food_entry,
)
from tools.web_search import web_search
from utils.function_to_schema import function_to_schema

TOOL_HANDLERS = {
    ToolName.CREATE_FOOD: create_food,
    ToolName.UPDATE_FOOD: update_food,
    ToolName.DELETE_FOOD: delete_food,
    ToolName.ADD_FOOD_ENTRY: add_food_entry,
    ToolName.EDIT_FOOD_ENTRY: edit_food_entry,
    ToolName.DELETE_FOOD_ENTRY: delete_food_entry,
    ToolName.WEB_SEARCH: web_search,
}

_missing = set(ToolName) - set(TOOL_HANDLERS)
if _missing:
    raise RuntimeError(f"No handler registered for tools: {sorted(t.value for t in _missing)}")

TOOLS_SCHEMA = [function_to_schema(TOOL_HANDLERS[name], skip=("ctx",)) for name in ToolName]

__all__ = [
    "ToolName",
    "ToolContext",
    "ToolOutcome",
    "SideEffect",
    "SideEffectKind",
    "TOOL_HANDLERS",
    "TOOLS_SCHEMA",
]
