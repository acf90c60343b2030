"""
Casekeeper - Async Utilities
============================

Helpers for running many independent async operations with bounded
concurrency and without silent failures.

Usage:
    from casekeeper.utils.async_utils import bounded_gather

    results = await bounded_gather(
        [("Ban in 1234", executor.ban(1234, user_id, reason)),
         ("Ban in 5678", executor.ban(5678, user_id, reason))],
        limit=5,
        timeout=15.0,
        context="Global Ban",
    )
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Sequence, Tuple

from casekeeper.core.logger import logger


async def bounded_gather(
    operations: Sequence[Tuple[str, Awaitable[Any]]],
    limit: int,
    timeout: Optional[float] = None,
    context: Optional[str] = None,
) -> List[Any]:
    """
    Run operations concurrently, at most `limit` at a time.

    Each operation gets its own timeout, so one slow target cannot hold
    up the rest. Failures are logged and returned in place of the result
    (like asyncio.gather with return_exceptions=True); a timeout comes
    back as asyncio.TimeoutError.

    Args:
        operations: Tuples of (operation_name, awaitable).
        limit: Maximum number of operations in flight.
        timeout: Per-operation timeout in seconds, or None.
        context: Optional context string for error logs.

    Returns:
        Results in the same order as operations.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run_with_semaphore(awaitable: Awaitable[Any]) -> Any:
        async with semaphore:
            if timeout is None:
                return await awaitable
            return await asyncio.wait_for(awaitable, timeout=timeout)

    names = [name for name, _ in operations]
    results = await asyncio.gather(
        *(run_with_semaphore(awaitable) for _, awaitable in operations),
        return_exceptions=True,
    )

    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            error_details = [
                ("Operation", name),
                ("Error Type", type(result).__name__),
                ("Error", str(result)[:100] or "timed out"),
            ]
            if context:
                error_details.insert(0, ("Context", context))
            logger.warning("Async Operation Failed", error_details)

    return results


__all__ = ["bounded_gather"]
