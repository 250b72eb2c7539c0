"""Fire-and-forget helpers with an explicit error boundary.

Background coroutines must never surface exceptions to the event loop's
default handler; failures are logged under the given label instead.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Strong references so pending tasks are not garbage collected mid-flight.
_background_tasks: set[asyncio.Task] = set()


async def run_guarded(awaitable: Awaitable[T], label: str) -> T | None:
    """Await `awaitable`, logging and swallowing any exception.

    Args:
        awaitable: Coroutine or future to run.
        label: Short description used in the error log.

    Returns:
        The awaited result, or None when it raised.
    """
    try:
        return await awaitable
    except Exception:
        logger.exception("Background work failed: %s", label)
        return None


def spawn_guarded(awaitable: Awaitable[T], label: str) -> asyncio.Task:
    """Schedule `awaitable` on the running loop inside run_guarded."""
    task = asyncio.create_task(run_guarded(awaitable, label), name=label)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def drain_background_tasks() -> None:
    """Wait for all pending guarded tasks (used on shutdown and in tests)."""
    while _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)
