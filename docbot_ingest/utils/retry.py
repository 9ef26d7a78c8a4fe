"""Retry-with-backoff and deadline helpers for external calls.

Every embedding, vector-store and object-store call made during ingestion
goes through :func:`retry_with_backoff`: each attempt races the operation
against a per-attempt timeout, failures are retried with a doubling delay,
and once attempts are exhausted the last error propagates unchanged.

:func:`with_deadline` wraps a whole invocation in a single deadline and
raises :class:`~docbot_ingest.utils.errors.InvocationTimeoutError` when it
elapses.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from docbot_ingest.utils.errors import (
    DocbotError,
    InvocationTimeoutError,
    TransientExternalError,
)

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 2.0
DEFAULT_ATTEMPT_TIMEOUT = 90.0


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, TransientExternalError):
        return True
    # Other application errors describe permanent conditions.
    return not isinstance(exc, DocbotError)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[_T]],
    *,
    operation_name: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    attempt_timeout: float | None = DEFAULT_ATTEMPT_TIMEOUT,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> _T:
    """Call *operation* until it succeeds or *max_attempts* is reached.

    Parameters
    ----------
    operation:
        Zero-argument callable returning a fresh awaitable per attempt.
    operation_name:
        Label used in log events and timeout messages.
    max_attempts:
        Total attempts, including the first.
    initial_delay:
        Seconds to wait after the first failure; doubles after each
        subsequent failure.
    attempt_timeout:
        Per-attempt deadline in seconds.  ``None`` disables it.
    sleep:
        Injected for tests.

    Raises
    ------
    TransientExternalError
        When an attempt times out (and it was the last attempt).
    Exception
        The last error raised by *operation* once retries are exhausted,
        or immediately for non-retryable application errors.
    """
    attempts = max(1, max_attempts)
    last_error: BaseException | None = None

    for attempt in range(attempts):
        try:
            if attempt_timeout is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=attempt_timeout)
        except asyncio.TimeoutError:
            last_error = TransientExternalError(
                message=f"Operation timed out after {attempt_timeout}s: {operation_name}",
            )
        except Exception as exc:
            if not _is_retryable(exc):
                raise
            last_error = exc

        logger.warning(
            "retry_attempt_failed",
            operation=operation_name,
            attempt=attempt + 1,
            max_attempts=attempts,
            error=str(last_error),
        )
        if attempt < attempts - 1:
            delay = initial_delay * (2**attempt)
            logger.info("retry_scheduled", operation=operation_name, delay_s=delay)
            await sleep(delay)

    assert last_error is not None
    raise last_error


async def with_deadline(awaitable: Awaitable[_T], timeout: float, operation_name: str) -> _T:
    """Await *awaitable*, raising :class:`InvocationTimeoutError` after *timeout* seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise InvocationTimeoutError(
            message=f"Operation timed out after {timeout}s: {operation_name}",
        ) from exc
