import inspect
from typing import Any


async def maybe_await(result: Any) -> Any:
    """Await ``result`` when a hook handed back an awaitable, pass it through otherwise."""
    if inspect.isawaitable(result):
        return await result
    return result
