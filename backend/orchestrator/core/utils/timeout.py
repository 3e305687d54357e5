# orchestrator/core/utils/timeout.py
"""
Caller-side timeout for awaitables.

The awaited operation races a timer. When the timer wins, the caller gets a
ToolTimeoutError but the operation is NOT cancelled: it keeps running in the
background and its eventual outcome is logged and dropped. Anything it
touches must therefore tolerate completing after the caller has moved on.
"""

import asyncio
from typing import Any, Awaitable, Optional, Set
from config.logger import logger
from orchestrator.core.exceptions import ToolTimeoutError

# Strong references to operations that outlived their caller
_orphaned: Set[asyncio.Future] = set()


def _log_late_outcome(label: str):
    def _callback(task: asyncio.Future) -> None:
        _orphaned.discard(task)
        if task.cancelled():
            logger.warning(f"{label} was cancelled after its caller timed out")
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"{label} failed after its caller timed out: {exc}")
        else:
            logger.warning(f"{label} completed after its caller timed out; result discarded")
    return _callback


async def run_with_timeout(
    awaitable: Awaitable[Any],
    timeout: float,
    label: Optional[str] = None
) -> Any:
    """
    Await `awaitable` for at most `timeout` seconds.

    Args:
        awaitable: Coroutine or future to run
        timeout: Seconds before the caller gives up
        label: Name used in logs and in the error message

    Returns:
        The operation's result when it settles in time (its exception is re-raised)

    Raises:
        ToolTimeoutError: When the timer wins the race
    """
    label = label or "operation"
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=timeout)

    if task in done:
        return task.result()

    _orphaned.add(task)
    task.add_done_callback(_log_late_outcome(label))
    logger.warning(f"{label} did not settle within {timeout}s; continuing without its result")
    raise ToolTimeoutError(
        f"{label} timed out after {timeout:g}s",
        timeout=timeout
    )


def pending_orphans() -> int:
    """Number of timed-out operations still running in the background."""
    return len(_orphaned)
