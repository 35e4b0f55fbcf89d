from fastapi.concurrency import run_in_threadpool

from core.exceptions import ToolExecutionError
from tools.base import ToolContext, ToolOutcome


async def web_search(ctx: ToolContext, query: str) -> ToolOutcome:
    """
    Search the web for information. Use for looking up nutritional info, brands, or any other factual data.

    Args:
        query: Search query
    """
    if ctx.search_client is None:
        raise ToolExecutionError("Search is not available right now.")

    # requests is blocking; keep the event loop free while it runs
    results = await run_in_threadpool(ctx.search_client.search, query)
    return ToolOutcome(result_text=f'Search results for "{query}":\n\n{results}')
