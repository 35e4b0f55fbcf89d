import inspect
import json
from datetime import date
from typing import Any, Dict, Optional, Union

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from core.exceptions import ToolExecutionError
from tools import TOOL_HANDLERS, TOOLS_SCHEMA, ToolContext, ToolName, ToolOutcome
from utils.logger import get_logger

logger = get_logger("tool_executor")


class ToolExecutor:
    """
    Runs one model tool call against the user's food data.

    Every failure is folded into the result text so the conversation can go on;
    nothing raised by a handler reaches the caller.
    """

    def __init__(self, db: Session, search_client: Any = None):
        self.db = db
        self.search_client = search_client
        self.tools_schema = TOOLS_SCHEMA

    @staticmethod
    def parse_arguments(arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
        if arguments is None or arguments == "":
            return {}
        if isinstance(arguments, dict):
            return arguments
        parsed = json.loads(arguments)
        if not isinstance(parsed, dict):
            raise ToolExecutionError("Tool arguments must be a JSON object.")
        return parsed

    async def execute(
        self,
        tool_name: str,
        arguments: Union[str, Dict[str, Any], None],
        user_id: str,
        target_date: date,
    ) -> ToolOutcome:
        try:
            name = ToolName(tool_name)
        except ValueError:
            logger.warning(f"Model requested unknown tool {tool_name}")
            return ToolOutcome(result_text=f"Unknown tool: {tool_name}")

        handler = TOOL_HANDLERS[name]
        ctx = ToolContext(
            db=self.db,
            user_id=user_id,
            target_date=target_date,
            search_client=self.search_client,
        )

        try:
            args = self.parse_arguments(arguments)
            if inspect.iscoroutinefunction(handler):
                return await handler(ctx, **args)
            # database handlers are blocking
            return await run_in_threadpool(handler, ctx, **args)
        except ToolExecutionError as e:
            await run_in_threadpool(self._rollback)
            logger.info(f"Tool {tool_name} failed for user {user_id}: {e}")
            return ToolOutcome(result_text=f"Error: {e}")
        except Exception as e:
            await run_in_threadpool(self._rollback)
            logger.error(f"Error executing tool {tool_name} for user {user_id}: {e}", exc_info=True)
            return ToolOutcome(result_text=f"Error executing {tool_name}: {e}")

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            logger.error(f"Rollback after tool failure failed: {e}")


def describe_outcome(outcome: ToolOutcome) -> Optional[Dict[str, Any]]:
    """``data`` object of a data_changed event, or None when nothing changed"""
    if outcome.side_effect is None:
        return None
    return {outcome.side_effect.kind.value: outcome.side_effect.record}
