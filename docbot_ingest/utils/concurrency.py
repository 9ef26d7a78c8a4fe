"""Bounded-concurrency helpers for the embedding fan-out.

:func:`throttled_gather` runs a list of awaitables with at most N in flight
and returns results **in input order**.  The orchestrator relies on that
ordering to pair each embedding batch with the chunks it was computed
from; re-ordering would silently attach vectors to the wrong metadata.

When one awaitable fails (and ``return_exceptions`` is off) the others are
cancelled before the error propagates, so no embedding call outlives a
failed invocation.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    limit: int,
    return_exceptions: bool = False,
) -> list[_T]:
    """Run awaitables concurrently with at most *limit* executing at once.

    Parameters
    ----------
    coros:
        Awaitable objects to execute.
    limit:
        Maximum number running simultaneously.  Values below 1 are
        treated as 1 (sequential).
    return_exceptions:
        Mirrors ``asyncio.gather``: when ``False`` the first failure
        cancels every other awaitable and then propagates to the caller.

    Returns
    -------
    list
        Results in the same order as *coros*.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [asyncio.ensure_future(_wrapped(c)) for c in coros]
    if return_exceptions:
        return await asyncio.gather(*tasks, return_exceptions=True)

    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # Awaitables still queued on the semaphore never started.
        for coro in coros:
            if inspect.iscoroutine(coro):
                coro.close()
        raise
